import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shorturl_app.analytics.device import is_social_media_bot, parse_device_type
from shorturl_app.analytics.geo import GeoResolver
from shorturl_app.analytics.headers import ClientInfo
from shorturl_app.config import settings
from shorturl_app.exceptions import NotFoundError, ValidationError
from shorturl_app.models.click import Click
from shorturl_app.models.url import URL
from shorturl_app.services.link_preview import PreviewFetcher, render_preview_html
from shorturl_app.services.url_service import URLService, build_short_url
from shorturl_app.timezones import hour_bucket, to_display

logger = logging.getLogger(__name__)


@dataclass
class RedirectOutcome:
    """Either a plain redirect target, or an HTML preview page for crawlers"""
    original_url: str
    preview_html: Optional[str] = None

    @property
    def is_preview(self) -> bool:
        return self.preview_html is not None


class RedirectService:
    """
    Resolves short codes for visitors and records each click.

    Flow:
    1. Look up the short link (404 if missing, nothing recorded)
    2. Record the click: device type, geo location, headers
       (best effort: failures are logged, never raised)
    3. Crawlers get an Open Graph preview page, humans a 302
    """

    def __init__(
        self,
        db: Session,
        geo_resolver: GeoResolver,
        preview_fetcher: PreviewFetcher,
        url_service: Optional[URLService] = None,
    ):
        self.db = db
        self.geo_resolver = geo_resolver
        self.preview_fetcher = preview_fetcher
        self.url_service = url_service or URLService(db)

    async def resolve(
        self,
        short_code: str,
        client: ClientInfo,
        base_url: str,
        forwarded_user_agent: str = "",
    ) -> RedirectOutcome:
        """
        Args:
            short_code: Code from the request path
            client: Extracted visitor info
            base_url: Public base URL, used for og:url and the default image
            forwarded_user_agent: Raw X-Forwarded-User-Agent, also checked for crawlers

        Raises:
            ValidationError: empty short code
            NotFoundError: unknown short code
            StorageError: lookup failed
        """
        if not short_code or not short_code.strip():
            raise ValidationError("Short code is required")

        url = await self.url_service.get_url_by_short_code(short_code)
        if url is None:
            raise NotFoundError("Short URL not found")

        original_url = url.original_url
        await self.record_click(url, client)

        is_bot = is_social_media_bot(client.user_agent) or (
            bool(forwarded_user_agent) and is_social_media_bot(forwarded_user_agent)
        )
        logger.info(
            "User-Agent: %s, X-Forwarded-User-Agent: %s, IsBot: %s",
            client.user_agent, forwarded_user_agent, is_bot,
        )

        if not is_bot:
            return RedirectOutcome(original_url=original_url)

        logger.info("Returning meta HTML for bot. BaseURL: %s, ShortCode: %s", base_url, short_code)
        metadata = await self.preview_fetcher.fetch_metadata(original_url)
        page = render_preview_html(
            metadata,
            short_url=build_short_url(base_url, short_code),
            original_url=original_url,
            base_url=base_url,
        )
        return RedirectOutcome(original_url=original_url, preview_html=page)

    async def record_click(self, url: URL, client: ClientInfo) -> Optional[Click]:
        """
        Insert a click row for this visit.

        Never raises: analytics must not break the redirect. Returns the
        stored Click, or None if recording failed.
        """
        # commit/rollback expire ORM attributes; read nothing from url or click afterwards
        short_code = url.short_code
        clicked_at = datetime.now(timezone.utc)
        try:
            device_type = parse_device_type(client.user_agent)
            location = await self.geo_resolver.resolve(client.ip)

            click = Click(
                url_id=url.id,
                clicked_at=clicked_at,
                ip_address=client.ip,
                user_agent=client.user_agent,
                referrer=client.referrer,
                device_type=device_type,
                location=location,
            )

            if settings.debug:
                logger.info(
                    "Recording click - IP: %s, User-Agent: %s, Referrer: %s, Device: %s, Location: %s",
                    client.ip, client.user_agent, client.referrer, device_type, location,
                )

            self.db.add(click)
            self.db.commit()
        except Exception as e:
            self._rollback()
            logger.error("Error recording click for short_code %s: %s", short_code, e)
            return None

        logger.info(
            "Click recorded - ShortCode: %s, Time (display): %s, Time slot: %s",
            short_code,
            to_display(clicked_at).strftime("%Y-%m-%d %H:%M:%S"),
            hour_bucket(clicked_at),
        )
        return click

    def _rollback(self):
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            logger.error("Rollback after failed click insert also failed: %s", e)
