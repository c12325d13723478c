"""Shared test fixtures for the risk engine tests."""

import os
import re
from datetime import UTC, datetime

import pytest

from src.shared.errors import GeolocationUnavailableError, StateStoreError
from src.shared.geolocation import GeoLocation

os.environ.setdefault("REDIS_URL", "redis://localhost:6379/1")

NOW = datetime(2026, 1, 15, 14, 0, 0, tzinfo=UTC)


def _glob_to_regex(pattern: str) -> str:
    """Redis MATCH semantics for `*`, `?` and backslash escapes."""
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return "".join(out)


class InMemoryStateStore:
    """Dict-backed StateStore. TTLs are recorded, not enforced."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.scans: list[str] = []

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def keys(self, pattern: str) -> list[str]:
        self.scans.append(pattern)
        regex = re.compile(_glob_to_regex(pattern))
        return sorted(k for k in self.data if regex.fullmatch(k))

    async def increment(
        self, key: str, amount: float = 1, ttl_seconds: int | None = None
    ) -> float:
        value = float(self.data.get(key, 0)) + amount
        self.data[key] = str(value)
        if ttl_seconds and self.ttls.get(key) is None:
            self.ttls[key] = ttl_seconds
        return value

    def snapshot(self) -> dict[str, str]:
        return dict(self.data)


class FailingStateStore:
    """Every operation fails as if Redis were unreachable."""

    async def get(self, key):
        raise StateStoreError(f"get {key} failed: connection refused")

    async def set(self, key, value, ttl_seconds=None):
        raise StateStoreError(f"set {key} failed: connection refused")

    async def delete(self, key):
        raise StateStoreError(f"delete {key} failed: connection refused")

    async def keys(self, pattern):
        raise StateStoreError(f"scan {pattern} failed: connection refused")

    async def increment(self, key, amount=1, ttl_seconds=None):
        raise StateStoreError(f"increment {key} failed: connection refused")


class StaticGeoLocator:
    def __init__(self, locations: dict[str, GeoLocation] | None = None) -> None:
        self.locations = locations or {}
        self.calls: list[str] = []

    async def lookup(self, ip: str) -> GeoLocation | None:
        self.calls.append(ip)
        return self.locations.get(ip)


class FailingGeoLocator:
    async def lookup(self, ip: str) -> GeoLocation | None:
        raise GeolocationUnavailableError(f"lookup {ip} timed out")


class FrozenClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


US_IP = "8.8.8.8"
HT_IP = "45.32.1.9"
IR_IP = "5.160.0.1"


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def geolocator() -> StaticGeoLocator:
    return StaticGeoLocator(
        {
            US_IP: GeoLocation(country="US", region="NY", city="New York"),
            HT_IP: GeoLocation(country="HT", region="Ouest", city="Port-au-Prince"),
            IR_IP: GeoLocation(country="IR", region="Tehran", city="Tehran"),
        }
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()
