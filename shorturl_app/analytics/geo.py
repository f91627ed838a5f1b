"""
IP geolocation for click analytics.

Lookups go to a third-party HTTP API with a short timeout. Every failure
degrades to a sentinel location; nothing here raises into the redirect path.
"""

import asyncio
import logging

import requests

logger = logging.getLogger(__name__)


LOCAL_LOCATION = "本地"
UNKNOWN_LOCATION = "未知"

PRIVATE_PREFIXES = ("127.", "10.", "172.", "192.168.")
LOCAL_HOSTS = ("", "::1", "localhost")


def is_local_address(ip: str) -> bool:
    """Loopback and private-range addresses never leave the process"""
    return ip in LOCAL_HOSTS or ip.startswith(PRIVATE_PREFIXES)


def format_location(data: dict) -> str:
    """
    Join country, region and city into a display string.

    Region is skipped when it repeats the country (city-states, some APIs).
    """
    country = data.get("country") or ""
    region = data.get("regionName") or ""
    city = data.get("city") or ""

    parts = []
    if country:
        parts.append(country)
    if region and region != country:
        parts.append(region)
    if city:
        parts.append(city)

    return ", ".join(parts) if parts else UNKNOWN_LOCATION


class GeoResolver:
    """
    Resolves an IP address to a coarse location string.

    Uses ip-api.com style JSON (country, regionName, city) by default.
    The HTTP call is blocking, so resolve() runs it in a worker thread.
    """

    def __init__(self, api_url: str, timeout: float = 2.0):
        """
        Args:
            api_url: URL template with an {ip} placeholder
            timeout: Seconds before the lookup is abandoned
        """
        self.api_url = api_url
        self.timeout = timeout

    def lookup(self, ip: str) -> str:
        """Blocking lookup; returns a location or a sentinel"""
        ip = (ip or "").strip()
        if is_local_address(ip):
            return LOCAL_LOCATION

        try:
            response = requests.get(self.api_url.format(ip=ip), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Error fetching IP location for %s: %s", ip, e)
            return UNKNOWN_LOCATION

        if response.status_code != 200:
            logger.warning("IP location lookup for %s returned HTTP %s", ip, response.status_code)
            return UNKNOWN_LOCATION

        try:
            data = response.json()
        except ValueError as e:
            logger.warning("Error parsing IP location for %s: %s", ip, e)
            return UNKNOWN_LOCATION

        if not isinstance(data, dict):
            return UNKNOWN_LOCATION
        return format_location(data)

    async def resolve(self, ip: str) -> str:
        """Non-blocking wrapper around lookup(), capped at timeout seconds overall"""
        if is_local_address((ip or "").strip()):
            return LOCAL_LOCATION
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.lookup, ip), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("IP location lookup for %s timed out after %ss", ip, self.timeout)
            return UNKNOWN_LOCATION
