"""
Click analytics helpers.

Pure classification of request data (headers, user agents) plus the
geolocation lookup used when a click is recorded.
"""

from .headers import ClientInfo, extract_client_info
from .device import parse_device_type, parse_os, is_social_media_bot
from .geo import GeoResolver, LOCAL_LOCATION, UNKNOWN_LOCATION

__all__ = [
    "ClientInfo",
    "extract_client_info",
    "parse_device_type",
    "parse_os",
    "is_social_media_bot",
    "GeoResolver",
    "LOCAL_LOCATION",
    "UNKNOWN_LOCATION",
]
