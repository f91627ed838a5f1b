"""
User-Agent classification into device type and operating system.

Both classifiers are ordered first-match rule tables evaluated against the
lower-cased user agent. Order matters: an iPad UA also mentions "mac os x",
and Android UAs also mention "linux", so the more specific rules come first.

Labels are persisted in clicks.device_type and compared across reports, so
changing a label or reordering rules changes historical analytics.
"""

import re
from typing import Callable, List, Optional, Tuple


UNKNOWN_DEVICE = "unknown"
OTHER_OS = "other"

Predicate = Callable[[str], bool]


def _contains(*needles: str) -> Predicate:
    return lambda ua: any(needle in ua for needle in needles)


def _is_android_tablet(ua: str) -> bool:
    # Android phones advertise "Mobile"; tablets usually don't
    return "android" in ua and (
        "tablet" in ua or "pad" in ua or "mobile" not in ua
    )


DEVICE_RULES: List[Tuple[Predicate, str]] = [
    (_contains("ipad"), "iPad"),
    (_contains("iphone"), "iPhone"),
    (_contains("ipod"), "iPod"),
    (_is_android_tablet, "Android tablet"),
    (_contains("android"), "Android phone"),
    (_contains("tablet", "playbook", "kindle"), "tablet"),
    (_contains("macintosh", "mac os x", "macos"), "Mac"),
    (_contains("windows"), "Windows PC"),
    (lambda ua: "linux" in ua and "android" not in ua, "Linux"),
    (_contains("cros"), "Chrome OS"),
    (_contains("mobile", "blackberry", "windows phone"), "other phone"),
]
DEFAULT_DEVICE = "other computer"


def parse_device_type(user_agent: Optional[str]) -> str:
    """Map a user agent to a device-type label"""
    if not user_agent:
        return UNKNOWN_DEVICE

    ua = user_agent.lower()
    for predicate, label in DEVICE_RULES:
        if predicate(ua):
            return label
    return DEFAULT_DEVICE


_IOS_VERSION = re.compile(r"os\s+(\d+)[._](\d+)")
_ANDROID_VERSION = re.compile(r"android\s+(\d+)(?:[._](\d+))?")
_MACOS_VERSION = re.compile(r"mac\s+os\s+x\s+(\d+)[._](\d+)(?:[._](\d+))?")

WINDOWS_VERSIONS: List[Tuple[Tuple[str, ...], str]] = [
    (("windows nt 10", "windows 10"), "Windows 10/11"),
    (("windows nt 6.3",), "Windows 8.1"),
    (("windows nt 6.2",), "Windows 8"),
    (("windows nt 6.1",), "Windows 7"),
]


def _ios(ua: str) -> str:
    match = _IOS_VERSION.search(ua)
    if match:
        return f"iOS {match.group(1)}.{match.group(2)}"
    return "iOS"


def _android(ua: str) -> str:
    match = _ANDROID_VERSION.search(ua)
    if match:
        major, minor = match.group(1), match.group(2)
        return f"Android {major}.{minor}" if minor else f"Android {major}"
    return "Android"


def _macos(ua: str) -> str:
    match = _MACOS_VERSION.search(ua)
    if match:
        version = ".".join(part for part in match.groups() if part)
        return f"macOS {version}"
    return "macOS"


def _windows(ua: str) -> str:
    for needles, name in WINDOWS_VERSIONS:
        if any(needle in ua for needle in needles):
            return name
    return "Windows"


OS_RULES: List[Tuple[Predicate, Callable[[str], str]]] = [
    (_contains("iphone", "ipad", "ipod"), _ios),
    (_contains("android"), _android),
    (_contains("macintosh", "mac os x", "macos"), _macos),
    (_contains("windows"), _windows),
    (_contains("linux"), lambda ua: "Linux"),
    (_contains("cros"), lambda ua: "Chrome OS"),
]


def parse_os(user_agent: Optional[str]) -> str:
    """Map a user agent to an OS label, with version where the UA carries one"""
    ua = (user_agent or "").lower()
    for predicate, label_for in OS_RULES:
        if predicate(ua):
            return label_for(ua)
    return OTHER_OS


BOT_SIGNATURES = (
    "facebookexternalhit",
    "facebot",
    "twitterbot",
    "linkedinbot",
    "whatsapp",
    "telegrambot",
    "slackbot",
    "discordbot",
    "discord",
)


def is_social_media_bot(user_agent: Optional[str]) -> bool:
    """True for link-preview crawlers of the major social networks and chat apps"""
    ua = (user_agent or "").lower()
    return any(signature in ua for signature in BOT_SIGNATURES)
