"""
Client information extraction from proxy headers.

The service usually runs behind a proxy or CDN, so the transport peer is
rarely the real visitor. Headers are checked in priority order and the
first non-empty value wins.
"""

from dataclasses import dataclass
from typing import Mapping, Optional


IP_HEADERS = ("X-Real-IP", "X-Client-IP", "CF-Connecting-IP")
USER_AGENT_HEADERS = ("X-Forwarded-User-Agent", "X-User-Agent", "User-Agent")
REFERER_HEADERS = ("X-Forwarded-Referer", "X-Referer", "Referer")

UNKNOWN_USER_AGENT = "Unknown"


@dataclass(frozen=True)
class ClientInfo:
    ip: str
    user_agent: str
    referrer: str


def get_real_ip(headers: Mapping[str, str], peer_host: Optional[str]) -> str:
    forwarded_for = headers.get("X-Forwarded-For", "")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    for name in IP_HEADERS:
        value = headers.get(name)
        if value:
            return value

    return peer_host or ""


def get_real_user_agent(headers: Mapping[str, str]) -> str:
    for name in USER_AGENT_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return UNKNOWN_USER_AGENT


def get_real_referrer(headers: Mapping[str, str], own_domain: str) -> str:
    """
    Return the visitor's referrer, or "" for a direct visit.

    Only the first present header is considered. A referrer pointing at
    our own domain is a self-referential visit and also counts as direct.
    """
    for name in REFERER_HEADERS:
        value = headers.get(name)
        if value:
            if own_domain and own_domain in value:
                return ""
            return value
    return ""


def extract_client_info(
    headers: Mapping[str, str],
    peer_host: Optional[str],
    own_domain: str,
) -> ClientInfo:
    """
    Build ClientInfo from a request's headers and transport peer address.

    Args:
        headers: Case-insensitive header mapping (e.g. starlette Headers)
        peer_host: Direct connection address, if known
        own_domain: Domain of this service, filtered out of referrers
    """
    return ClientInfo(
        ip=get_real_ip(headers, peer_host),
        user_agent=get_real_user_agent(headers),
        referrer=get_real_referrer(headers, own_domain),
    )
