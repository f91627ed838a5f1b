"""
Short code generation strategies for URL shortener.
Uses Strategy Pattern to allow different generation algorithms.
"""

import secrets
from abc import ABC, abstractmethod


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self, original_url: str) -> str:
        """
        Generate a candidate short code.

        Args:
            original_url: The normalized URL being shortened

        Returns:
            A candidate code. Uniqueness is NOT guaranteed here; the
            URL service checks the store and retries on collision.
        """
        pass


def strip_scheme(url: str) -> str:
    for prefix in ("https://", "http://"):
        if url.startswith(prefix):
            return url[len(prefix):]
    return url


class URLLengthHexStrategy(ShortCodeStrategy):
    """
    Random hex code whose length follows the URL's length.

    Length is half the scheme-less URL length, clamped to [min, max], and
    kept shorter than the URL itself whenever the minimum allows it.

    Pros: Unpredictable, no sequence leaks, short codes for short URLs
    Cons: Collisions possible, so every candidate costs a DB lookup
    """

    def __init__(self, min_length: int = 6, max_length: int = 12):
        self.min_length = min_length
        self.max_length = max_length

    def code_length(self, original_url: str) -> int:
        """Target code length for a URL"""
        url_length = len(strip_scheme(original_url))

        length = min(max(url_length // 2, self.min_length), self.max_length)
        if length >= url_length:
            length = max(url_length - 1, self.min_length)
        return length

    def generate(self, original_url: str) -> str:
        length = self.code_length(original_url)
        # hex doubles the byte count, so there are always enough characters
        return secrets.token_bytes(length).hex()[:length]
