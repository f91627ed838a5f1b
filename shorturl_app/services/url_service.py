import logging
from typing import Annotated, Optional

from pydantic import AnyUrl, TypeAdapter, UrlConstraints
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shorturl_app.config import settings
from shorturl_app.exceptions import (
    ConflictError,
    ExhaustedRetriesError,
    StorageError,
    ValidationError,
)
from shorturl_app.models.url import URL
from shorturl_app.schemas.url import ShortenResponse
from shorturl_app.services.short_code_factory import get_short_code_strategy
from shorturl_app.services.short_code_strategies import ShortCodeStrategy
from shorturl_app.timezones import as_utc

logger = logging.getLogger(__name__)

# http(s) only, no length cap (HttpUrl stops at 2083 characters)
_http_url = TypeAdapter(Annotated[AnyUrl, UrlConstraints(allowed_schemes=["http", "https"])])


def normalize_url(raw_url: str) -> str:
    """Prepend https:// to URLs submitted without a scheme"""
    if raw_url.startswith("http://") or raw_url.startswith("https://"):
        return raw_url
    return "https://" + raw_url


def is_valid_url(url: str) -> bool:
    """An absolute http(s) URL with a host"""
    try:
        parsed = _http_url.validate_python(url)
    except PydanticValidationError:
        return False
    return bool(parsed.scheme and parsed.host)


def build_short_url(base_url: str, short_code: str) -> str:
    return f"{base_url.rstrip('/')}/url/{short_code}"


class _DuplicateShortCode(Exception):
    """Insert hit the unique constraint on urls.short_code"""


def is_short_code_conflict(error: IntegrityError) -> bool:
    """
    True when the violated constraint is the uniqueness of urls.short_code.

    SQLite reports "UNIQUE constraint failed: urls.short_code"; PostgreSQL and
    MySQL name the unique index (ix_urls_short_code).
    """
    message = str(getattr(error, "orig", error)).lower()
    return "short_code" in message and ("unique" in message or "duplicate" in message)


class URLService:
    """
    URL Service: creates short links and looks them up.

    The database session is injected (one per request) so the service holds
    no global store handle and is easy to test with a throwaway session.
    """

    def __init__(
        self,
        db: Session,
        short_code_strategy: Optional[ShortCodeStrategy] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Initialize URL service with dependencies.

        Args:
            db: Database session
            short_code_strategy: Code generator (defaults to the configured one)
            max_retries: Cap on generated-code collisions before giving up
        """
        self.db = db
        self.short_code_strategy = short_code_strategy or get_short_code_strategy()
        self.max_retries = max_retries if max_retries is not None else settings.max_code_retries

    async def create_short_url(
        self,
        raw_url: str,
        custom_code: Optional[str] = None,
        base_url: str = "",
    ) -> ShortenResponse:
        """Create a new short URL

        Process:
        1. Normalize (add https://) and validate the URL
        2. Use the custom code if free, else generate until an unused one is found
        3. Insert; the unique constraint on short_code is the final arbiter,
           since the existence check and the insert are not atomic
        4. Build the public short URL from base_url

        Raises:
            ValidationError: URL has no scheme or host
            ConflictError: custom code already taken
            ExhaustedRetriesError: every generated candidate collided
            StorageError: the store failed
        """
        normalized_url = normalize_url(raw_url.strip())
        if not is_valid_url(normalized_url):
            raise ValidationError("Invalid URL format")

        if custom_code:
            url = self._create_with_custom_code(normalized_url, custom_code)
        else:
            url = self._create_with_generated_code(normalized_url)

        logger.info("Created short code %s for %s", url.short_code, url.original_url)

        return ShortenResponse(
            short_url=build_short_url(base_url, url.short_code),
            original_url=url.original_url,
            short_code=url.short_code,
            created_at=as_utc(url.created_at),
        )

    def _create_with_custom_code(self, original_url: str, custom_code: str) -> URL:
        if self.code_exists(custom_code):
            raise ConflictError("Custom code already exists")
        try:
            return self._insert(original_url, custom_code)
        except _DuplicateShortCode:
            # Lost the race against a concurrent request for the same code
            raise ConflictError("Custom code already exists")

    def _create_with_generated_code(self, original_url: str) -> URL:
        for attempt in range(1, self.max_retries + 1):
            candidate = self.short_code_strategy.generate(original_url)
            if self.code_exists(candidate):
                logger.debug("Short code collision on %s (attempt %d)", candidate, attempt)
                continue
            try:
                return self._insert(original_url, candidate)
            except _DuplicateShortCode:
                logger.debug("Short code %s taken concurrently (attempt %d)", candidate, attempt)

        raise ExhaustedRetriesError(
            f"Could not generate unique short code after {self.max_retries} attempts"
        )

    def code_exists(self, short_code: str) -> bool:
        try:
            return self.db.query(URL.id).filter(URL.short_code == short_code).first() is not None
        except SQLAlchemyError as e:
            logger.error("Database error checking short code %s: %s", short_code, e)
            raise StorageError(f"Database error: {e}")

    def _insert(self, original_url: str, short_code: str) -> URL:
        url = URL(original_url=original_url, short_code=short_code)
        try:
            self.db.add(url)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_short_code_conflict(e):
                raise _DuplicateShortCode(short_code)
            logger.error("Integrity error inserting URL: %s", e)
            raise StorageError(f"Failed to create short URL: {e}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error inserting URL: %s", e)
            raise StorageError(f"Failed to create short URL: {e}")

        self.db.refresh(url)
        return url

    async def get_url_by_short_code(self, short_code: str) -> Optional[URL]:
        """Get URL by short code, or None

        Note: Async for interface consistency, DB query is sync (fast).
        """
        try:
            return self.db.query(URL).filter(URL.short_code == short_code).first()
        except SQLAlchemyError as e:
            logger.error("Error querying URL %s: %s", short_code, e)
            raise StorageError("Database error")
