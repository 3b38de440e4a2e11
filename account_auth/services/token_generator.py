"""Single-use token generation."""

import secrets


class TokenGenerator:
    """Produces URL-safe random tokens. Purpose and expiry are tracked by the caller."""

    def __init__(self, nbytes: int = 32):
        if nbytes < 16:
            raise ValueError("Tokens need at least 16 random bytes")
        self.nbytes = nbytes

    def new_token(self) -> str:
        return secrets.token_urlsafe(self.nbytes)
