"""Coarse IP geolocation.

Both the location check and the device fingerprint service resolve through
the same GeoLocator, and the ip-api client caches answers under
``geo:ip:{ip}`` so a single evaluation never pays for the same lookup twice.
"""

import ipaddress
from typing import Protocol

import httpx
import structlog
from pydantic import BaseModel

from .errors import GeolocationUnavailableError, StateStoreError
from .state_store import StateStore, dump_json, load_json

logger = structlog.get_logger()

CACHE_KEY = "geo:ip:{ip}"


class GeoLocation(BaseModel):
    country: str
    region: str | None = None
    city: str | None = None


class GeoLocator(Protocol):
    async def lookup(self, ip: str) -> GeoLocation | None: ...


def is_public_ip(ip: str) -> bool:
    """False for malformed, private, loopback, link-local or reserved addresses."""
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    return not (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_reserved
        or addr.is_multicast
        or addr.is_unspecified
    )


class IpApiGeoLocator:
    """GeoLocator backed by an ip-api.com compatible JSON endpoint."""

    FIELDS = "status,countryCode,region,city"

    def __init__(
        self,
        store: StateStore | None = None,
        api_url: str = "http://ip-api.com/json/{ip}",
        timeout_seconds: float = 2.0,
        cache_ttl_seconds: int = 6 * 60 * 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = store
        self._api_url = api_url
        self._timeout = timeout_seconds
        self._cache_ttl = cache_ttl_seconds
        self._transport = transport

    async def lookup(self, ip: str) -> GeoLocation | None:
        if not ip or not is_public_ip(ip):
            logger.debug("geoip_unroutable_ip", ip=ip)
            return None

        cached = await self._get_cache(ip)
        if cached is not None:
            return cached

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    self._api_url.format(ip=ip), params={"fields": self.FIELDS}
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise GeolocationUnavailableError(f"lookup {ip} failed: {exc}") from exc
        except ValueError as exc:
            raise GeolocationUnavailableError(f"lookup {ip} returned invalid JSON") from exc

        if data.get("status") != "success" or not data.get("countryCode"):
            logger.info("geoip_unresolved", ip=ip, status=data.get("status"))
            return None

        location = GeoLocation(
            country=data["countryCode"],
            region=data.get("region") or None,
            city=data.get("city") or None,
        )
        await self._set_cache(ip, location)
        return location

    async def _get_cache(self, ip: str) -> GeoLocation | None:
        if self._store is None:
            return None
        try:
            data = await load_json(self._store, CACHE_KEY.format(ip=ip))
        except StateStoreError:
            logger.warning("geoip_cache_read_failed", ip=ip, exc_info=True)
            return None
        return GeoLocation(**data) if data else None

    async def _set_cache(self, ip: str, location: GeoLocation) -> None:
        if self._store is None:
            return
        try:
            await dump_json(
                self._store,
                CACHE_KEY.format(ip=ip),
                location.model_dump(),
                self._cache_ttl,
            )
        except StateStoreError:
            logger.warning("geoip_cache_write_failed", ip=ip, exc_info=True)
