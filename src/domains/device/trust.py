"""Device trust scoring: anomaly detection and weighted trust factors."""

from dataclasses import asdict, dataclass
from enum import StrEnum

from .config import TrustConfig
from .models import DeviceInfo
from .user_agent import parse_user_agent, platform_matches_os


class Anomaly(StrEnum):
    INCONSISTENT_BROWSER = "inconsistent_browser"
    INCONSISTENT_OS = "inconsistent_os"
    BROWSER_SPOOFING = "browser_spoofing"
    OS_SPOOFING = "os_spoofing"
    RESOLUTION_SPOOFING = "resolution_spoofing"
    STORAGE_DISABLED = "storage_disabled"
    NO_WEBGL = "no_webgl"


# Anomalies that mean the declared signals contradict the user agent
CONSISTENCY_ANOMALIES = frozenset({Anomaly.INCONSISTENT_BROWSER, Anomaly.INCONSISTENT_OS})


@dataclass
class TrustFactors:
    consistent_components: float = 1.0
    known_location: float = 0.0
    recent_activity: float = 0.0
    browser_fingerprint: float = 1.0
    anomaly_score: float = 1.0


def detect_anomalies(device: DeviceInfo) -> list[Anomaly]:
    """Compare the stored record against a fresh parse of its own signals."""
    anomalies: list[Anomaly] = []
    components = device.components
    fresh = parse_user_agent(components.user_agent)

    if device.metadata.browser.name != fresh.browser_name:
        anomalies.append(Anomaly.INCONSISTENT_BROWSER)

    if device.metadata.os.name != fresh.os_name or not platform_matches_os(
        components.platform, fresh.os_name
    ):
        anomalies.append(Anomaly.INCONSISTENT_OS)

    if components.has_lied_browser:
        anomalies.append(Anomaly.BROWSER_SPOOFING)
    if components.has_lied_os:
        anomalies.append(Anomaly.OS_SPOOFING)
    if components.has_lied_resolution:
        anomalies.append(Anomaly.RESOLUTION_SPOOFING)

    # Headless automation usually runs with both storages off
    if components.local_storage is not True and components.session_storage is not True:
        anomalies.append(Anomaly.STORAGE_DISABLED)

    if components.webgl is None:
        anomalies.append(Anomaly.NO_WEBGL)

    return anomalies


def evaluate_trust_factors(
    device: DeviceInfo,
    known_countries: set[str],
    now_ms: int,
    config: TrustConfig,
) -> TrustFactors:
    factors = TrustFactors(browser_fingerprint=config.browser_fingerprint_baseline)

    location = device.metadata.location
    if location is not None:
        factors.known_location = 1.0 if location.country in known_countries else 0.5

    last_seen = device.last_seen or device.created_at
    elapsed = max(0, now_ms - last_seen)
    factors.recent_activity = max(0.0, 1.0 - elapsed / config.recent_activity_window_ms)

    anomalies = detect_anomalies(device)
    inconsistencies = sum(1 for a in anomalies if a in CONSISTENCY_ANOMALIES)
    factors.consistent_components = max(
        0.0, 1.0 - inconsistencies * config.inconsistency_penalty
    )
    factors.anomaly_score = max(0.0, 1.0 - len(anomalies) * config.anomaly_penalty)

    return factors


def calculate_trust_score(factors: TrustFactors, config: TrustConfig) -> float:
    weights = asdict(config.weights)
    score = sum(value * weights[name] for name, value in asdict(factors).items())
    return min(max(score, 0.0), 1.0)
