from bookreview.models.book import Book, BookGenre, Genre
from bookreview.models.review import Review
from bookreview.models.user import User

__all__ = ["Book", "BookGenre", "Genre", "Review", "User"]
