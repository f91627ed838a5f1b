from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from shorturl_app.analytics.headers import extract_client_info
from shorturl_app.services.redirect_service import RedirectService
from shorturl_app.dependencies import get_redirect_service, get_base_url
from shorturl_app.config import settings

router = APIRouter(tags=["redirect"])


async def _redirect(short_code: str, request: Request, base_url: str, service: RedirectService):
    client = extract_client_info(
        request.headers,
        request.client.host if request.client else None,
        settings.own_domain,
    )

    outcome = await service.resolve(
        short_code,
        client,
        base_url=base_url,
        forwarded_user_agent=request.headers.get("X-Forwarded-User-Agent", ""),
    )

    if outcome.is_preview:
        return HTMLResponse(content=outcome.preview_html, media_type="text/html; charset=utf-8")
    return RedirectResponse(url=outcome.original_url, status_code=status.HTTP_302_FOUND)


@router.get("/url/{short_code}")
async def redirect_short_url(
    short_code: str,
    request: Request,
    base_url: str = Depends(get_base_url),
    service: RedirectService = Depends(get_redirect_service)
):
    """
    Redirect to the original URL.

    Flow:
    1. Look up the code (404 if unknown, no click recorded)
    2. Record the click (IP, user agent, referrer, device, location)
    3. Social media crawlers get an Open Graph page, everyone else a 302
    """
    return await _redirect(short_code, request, base_url, service)


@router.get("/{short_code}")
async def redirect_short_code(
    short_code: str,
    request: Request,
    base_url: str = Depends(get_base_url),
    service: RedirectService = Depends(get_redirect_service)
):
    """Same as /url/{short_code}; kept for links issued before the /url/ prefix"""
    return await _redirect(short_code, request, base_url, service)
