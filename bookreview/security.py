from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from bookreview.config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRES_MINUTES, JWT_SECRET


class InvalidTokenError(Exception):
    pass


def _secret(password: str) -> bytes:
    # bcrypt only considers the first 72 bytes
    return password.encode()[:72]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_secret(password), salt).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_secret(password), password_hash.encode())
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=JWT_EXPIRES_MINUTES))
    payload = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id carried by a token, or raise InvalidTokenError."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e
    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise InvalidTokenError("Token subject is not a user id") from e
