from httpx import AsyncClient, Response


class BookReviewClient:
    """Thin wrapper around httpx.AsyncClient for the book review API.

    Keeps the bearer token returned by register/login and attaches it to
    later requests. 4xx responses come back as error dicts; 5xx raise.
    """

    def __init__(self, http: AsyncClient, token: str | None = None) -> None:
        self.http = http
        self.token = token

    # -- transport --

    def _headers(self) -> dict:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def get(self, path: str, **kwargs) -> dict | list:
        resp = await self.http.get(path, headers=self._headers(), **kwargs)
        return self._handle(resp)

    async def post(self, path: str, **kwargs) -> dict | list:
        resp = await self.http.post(path, headers=self._headers(), **kwargs)
        return self._handle(resp)

    async def put(self, path: str, **kwargs) -> dict | list:
        resp = await self.http.put(path, headers=self._headers(), **kwargs)
        return self._handle(resp)

    async def delete(self, path: str, **kwargs) -> dict | list:
        resp = await self.http.delete(path, headers=self._headers(), **kwargs)
        return self._handle(resp)

    def _handle(self, resp: Response) -> dict | list:
        if resp.status_code >= 500:
            raise RuntimeError(f"Server error {resp.status_code}: {resp.text}")
        if resp.status_code >= 400:
            body = resp.json()
            error = {"error": True, "status": resp.status_code, "detail": body.get("detail", resp.text)}
            if "errors" in body:
                error["errors"] = body["errors"]
            return error
        return resp.json()

    # -- auth --

    async def _authenticate(self, path: str, body: dict) -> dict:
        result = await self.post(path, json=body)
        if not result.get("error"):
            self.token = result["data"]["token"]
        return result

    async def register(self, email: str, password: str, name: str) -> dict:
        return await self._authenticate("/api/auth/register", {"email": email, "password": password, "name": name})

    async def login(self, email: str, password: str) -> dict:
        return await self._authenticate("/api/auth/login", {"email": email, "password": password})

    def logout(self) -> None:
        self.token = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    async def profile(self) -> dict:
        return await self.get("/api/auth/profile")

    # -- books --

    async def list_books(self, page: int = 1, limit: int = 12, genre: str | None = None) -> dict:
        params = {"page": page, "limit": limit}
        if genre:
            params["genre"] = genre
        return await self.get("/api/books", params=params)

    async def search_books(self, query: str, page: int = 1, limit: int = 12) -> dict:
        return await self.get("/api/books/search", params={"q": query, "page": page, "limit": limit})

    async def get_book(self, book_id: int) -> dict:
        return await self.get(f"/api/books/{book_id}")

    async def create_book(self, title: str, author: str, genre: list[str], published: str) -> dict:
        body = {"title": title, "author": author, "genre": genre, "published": published}
        return await self.post("/api/books", json=body)

    async def update_book(self, book_id: int, **fields) -> dict:
        return await self.put(f"/api/books/{book_id}", json=fields)

    async def delete_book(self, book_id: int) -> dict:
        return await self.delete(f"/api/books/{book_id}")

    # -- reviews --

    async def list_reviews(
        self,
        page: int = 1,
        limit: int = 10,
        book_id: int | None = None,
        user_id: int | None = None,
    ) -> dict:
        params = {"page": page, "limit": limit}
        if book_id is not None:
            params["bookId"] = book_id
        if user_id is not None:
            params["userId"] = user_id
        return await self.get("/api/reviews", params=params)

    async def my_reviews(self, page: int = 1, limit: int = 10) -> dict:
        return await self.get("/api/reviews/my", params={"page": page, "limit": limit})

    async def review_stats(self) -> dict:
        return await self.get("/api/reviews/stats")

    async def create_review(self, book_id: int, rating: float, comment: str | None = None) -> dict:
        body = {"bookId": book_id, "rating": rating}
        if comment is not None:
            body["comment"] = comment
        return await self.post("/api/reviews", json=body)

    async def update_review(self, review_id: int, rating: float | None = None, comment: str | None = None) -> dict:
        body = {}
        if rating is not None:
            body["rating"] = rating
        if comment is not None:
            body["comment"] = comment
        return await self.put(f"/api/reviews/{review_id}", json=body)

    async def delete_review(self, review_id: int) -> dict:
        return await self.delete(f"/api/reviews/{review_id}")
