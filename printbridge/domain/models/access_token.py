"""
Access token held in memory by the token cache.
"""

from dataclasses import dataclass


@dataclass
class AccessToken:
    """
    Bearer token obtained from the partner's OAuth endpoint.

    Attributes:
        value: Raw token string
        expires_at: Epoch seconds when the token expires (None never expires)
    """

    value: str
    expires_at: float | None = None

    def is_fresh(self, now: float, margin: float) -> bool:
        """Check whether the token can still be used ``margin`` seconds ahead."""
        if self.expires_at is None:
            return True
        return now < self.expires_at - margin

    def __repr__(self) -> str:
        # Never expose the token value in logs or tracebacks
        return f"AccessToken(value='***', expires_at={self.expires_at})"
