"""Host credential issuance and verification.

A host token is 32 random bytes, hex-encoded, handed to the host exactly once.
Only HMAC-SHA256(pepper, token) is stored; verification recomputes the keyed
hash and compares digests with ``hmac.compare_digest`` so the comparison time
does not depend on where the first differing byte sits.
"""
import hashlib
import hmac
import secrets
from typing import NamedTuple

from flashvote.errors import ConfigurationError

TOKEN_BYTES = 32


class IssuedToken(NamedTuple):
    token: str
    digest: str


class TokenAuthority:
    def __init__(self, pepper: str):
        if not pepper:
            raise ConfigurationError("HOST_TOKEN_PEPPER is required")
        self._key = pepper.encode("utf-8")

    def digest(self, token: str) -> str:
        return hmac.new(self._key, token.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue(self) -> IssuedToken:
        token = secrets.token_hex(TOKEN_BYTES)
        return IssuedToken(token=token, digest=self.digest(token))

    def verify(self, candidate: str, stored_digest: str) -> bool:
        # Unequal lengths come back False from compare_digest without a short-circuit
        # on content.
        return hmac.compare_digest(self.digest(candidate).encode("ascii"), stored_digest.encode("ascii"))
