from fastapi import APIRouter, Depends, status
from shorturl_app.schemas.url import ShortenRequest, ShortenResponse
from shorturl_app.schemas.stats import StatsResponse, ClickListResponse
from shorturl_app.services.url_service import URLService
from shorturl_app.services.stats_service import StatsService
from shorturl_app.dependencies import get_url_service, get_stats_service, get_base_url

router = APIRouter(prefix="/api", tags=["urls"])


@router.post("/shorten", response_model=ShortenResponse, status_code=status.HTTP_201_CREATED)
async def shorten_url(
    body: ShortenRequest,
    base_url: str = Depends(get_base_url),
    url_service: URLService = Depends(get_url_service)
):
    """Create a new short URL, optionally with a custom code"""
    return await url_service.create_short_url(
        body.url,
        custom_code=body.custom_code,
        base_url=base_url,
    )


@router.get("/stats/{short_code}", response_model=StatsResponse)
async def get_stats(
    short_code: str,
    stats_service: StatsService = Depends(get_stats_service)
):
    """Click statistics for a short URL"""
    return await stats_service.get_stats(short_code)


@router.get("/clicks/{short_code}", response_model=ClickListResponse)
async def get_click_list(
    short_code: str,
    stats_service: StatsService = Depends(get_stats_service)
):
    """The most recent clicks of a short URL, newest first"""
    return await stats_service.get_click_list(short_code)
