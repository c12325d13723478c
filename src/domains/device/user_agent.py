"""User-agent parsing.

Browser, OS and hardware come from the ``user-agents`` library. The
rendering engine and the declared-platform check use marker matching on the
lowercased user-agent string.
"""

from dataclasses import dataclass

from user_agents import parse

UNKNOWN_FAMILY = "Other"

CHROMIUM_MARKERS = ("chrome/", "chromium", "edg/", "opr/")
IOS_MARKERS = ("iphone", "ipad", "ipod")

# navigator.platform prefix -> OS families a genuine client could report
PLATFORM_OS_FAMILIES: dict[str, frozenset[str]] = {
    "win": frozenset({"Windows"}),
    "mac": frozenset({"Mac OS X", "macOS", "iOS"}),
    "iphone": frozenset({"iOS"}),
    "ipad": frozenset({"iOS", "Mac OS X"}),
    "ipod": frozenset({"iOS"}),
    "linux": frozenset({"Linux", "Android", "Ubuntu", "Chrome OS", "Fedora", "Debian"}),
    "android": frozenset({"Android"}),
    "cros": frozenset({"Chrome OS"}),
}


@dataclass(frozen=True)
class ParsedUserAgent:
    browser_name: str | None = None
    browser_version: str | None = None
    engine_name: str | None = None
    os_name: str | None = None
    os_version: str | None = None
    device_type: str | None = None
    device_model: str | None = None
    device_vendor: str | None = None


def contains_any(value: str, markers: tuple[str, ...]) -> bool:
    return any(marker in value for marker in markers)


def _known(value: str | None) -> str | None:
    if not value or value == UNKNOWN_FAMILY:
        return None
    return value


def detect_engine(ua: str) -> str | None:
    ua = ua.lower()
    if "trident/" in ua or "msie " in ua:
        return "Trident"
    if "edge/" in ua:
        return "EdgeHTML"
    if "applewebkit" in ua and contains_any(ua, IOS_MARKERS):
        # Every iOS browser is WebKit underneath
        return "WebKit"
    if contains_any(ua, CHROMIUM_MARKERS):
        return "Blink"
    if "presto" in ua:
        return "Presto"
    if "gecko/" in ua and "firefox" in ua:
        return "Gecko"
    if "applewebkit" in ua:
        return "WebKit"
    return None


def parse_user_agent(ua_string: str | None) -> ParsedUserAgent:
    ua_string = ua_string or ""
    ua = parse(ua_string)

    if ua.is_bot:
        device_type = "bot"
    elif ua.is_tablet:
        device_type = "tablet"
    elif ua.is_mobile:
        device_type = "mobile"
    elif ua.is_pc:
        device_type = "desktop"
    else:
        device_type = None

    return ParsedUserAgent(
        browser_name=_known(ua.browser.family),
        browser_version=ua.browser.version_string or None,
        engine_name=detect_engine(ua_string),
        os_name=_known(ua.os.family),
        os_version=ua.os.version_string or None,
        device_type=device_type,
        device_model=_known(ua.device.model),
        device_vendor=_known(ua.device.brand),
    )


def platform_matches_os(platform: str | None, os_name: str | None) -> bool:
    """Whether a declared navigator.platform is plausible for the parsed OS.

    Unknown platforms or an unparsed OS are given the benefit of the doubt.
    """
    if not platform or not os_name:
        return True
    declared = platform.strip().lower()
    for prefix, families in PLATFORM_OS_FAMILIES.items():
        if declared.startswith(prefix):
            return os_name in families
    return True
