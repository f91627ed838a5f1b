"""
FastAPI dependencies for dependency injection.

Services are built per request from an injected database session plus
process-wide singletons for the outbound HTTP helpers (geo lookup and
link-preview scraping). Tests swap any of them via app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from shorturl_app.analytics.geo import GeoResolver
from shorturl_app.config import settings
from shorturl_app.database.connection import get_db
from shorturl_app.services.link_preview import PreviewFetcher


@lru_cache()
def get_geo_resolver() -> GeoResolver:
    """
    Get geo resolver instance (singleton).

    @lru_cache ensures this is called only once.
    """
    return GeoResolver(api_url=settings.geo_api_url, timeout=settings.geo_timeout)


@lru_cache()
def get_preview_fetcher() -> PreviewFetcher:
    """Get link preview fetcher instance (singleton)."""
    return PreviewFetcher(
        timeout=settings.preview_timeout,
        max_bytes=settings.preview_max_bytes,
    )


def get_base_url(request: Request) -> str:
    """
    Public base URL of the service.

    The configured BASE_URL wins; otherwise it is derived from the request,
    honouring X-Forwarded-Proto from a TLS-terminating proxy.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")

    scheme = request.headers.get("X-Forwarded-Proto") or request.url.scheme
    host = request.headers.get("Host") or request.url.netloc
    return f"{scheme}://{host}"


def get_url_service(db: Session = Depends(get_db)):
    """Get URLService with its database session injected."""
    from shorturl_app.services.url_service import URLService
    return URLService(db=db)


def get_redirect_service(
    db: Session = Depends(get_db),
    geo_resolver: GeoResolver = Depends(get_geo_resolver),
    preview_fetcher: PreviewFetcher = Depends(get_preview_fetcher),
):
    """
    Get RedirectService with all dependencies injected.

    Controller depends on service; service depends on infrastructure
    (db session, geo lookup, preview scraping).
    """
    from shorturl_app.services.redirect_service import RedirectService
    return RedirectService(
        db=db,
        geo_resolver=geo_resolver,
        preview_fetcher=preview_fetcher,
    )


def get_stats_service(db: Session = Depends(get_db)):
    """Get StatsService with its database session injected."""
    from shorturl_app.services.stats_service import StatsService
    return StatsService(db=db)
