# foodmarket/services/session_tokens.py
"""
Klucz sesji koszyka.

Bez SESSION_SIGNING_SECRET naglowek X-Session-Id jest nieprzezroczystym kluczem.
Z sekretem serwer wydaje token HS256 (sub = klucz sesji) i przyjmuje tylko takie.
"""
import uuid
from datetime import datetime, timezone

from jose import JWTError, jwt

from foodmarket.domain.errors import InvalidSession, ValidationError

ALGORITHM = "HS256"
MAX_SESSION_KEY_LENGTH = 255


class SessionTokens:
    def __init__(self, secret: str = ""):
        self.secret = secret

    @property
    def signing_enabled(self) -> bool:
        return bool(self.secret)

    def new_session_key(self) -> str:
        return str(uuid.uuid4())

    def issue(self, session_key: str) -> str:
        if not self.signing_enabled:
            return session_key
        claims = {"sub": session_key, "iat": int(datetime.now(timezone.utc).timestamp())}
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def resolve(self, header_value: str | None) -> str:
        """Zwraca klucz sesji z wartosci naglowka albo rzuca blad."""
        value = (header_value or "").strip()
        if not value or value == "undefined":
            raise ValidationError("Session ID required (X-Session-Id header)")

        if not self.signing_enabled:
            if len(value) > MAX_SESSION_KEY_LENGTH:
                raise ValidationError("Session ID too long")
            return value

        try:
            claims = jwt.decode(value, self.secret, algorithms=[ALGORITHM])
        except JWTError:
            raise InvalidSession("Invalid session token")

        session_key = claims.get("sub")
        if not session_key:
            raise InvalidSession("Invalid session token")
        return session_key
