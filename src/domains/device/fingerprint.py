"""Device fingerprinting and trust management.

Key layout in the ephemeral store:
  device:{id}                 -> DeviceInfo for a device not yet bound to a user
  device:{id}:{user_id}       -> DeviceInfo bound to a user (30-day TTL)
  known-locations:{user_id}   -> [{"country": "US"}, ...]
"""

import hashlib
from typing import Any

import structlog

from src.shared.clock import Clock, to_epoch_ms, utc_now
from src.shared.errors import DeviceNotFoundError, GeolocationUnavailableError
from src.shared.geolocation import GeoLocation, GeoLocator
from src.shared.state_store import StateStore, dump_json, escape_pattern, load_json

from .config import TrustConfig, default_trust_config
from .models import (
    BrowserInfo,
    DeviceInfo,
    DeviceMetadata,
    DeviceSignals,
    HardwareInfo,
    OsInfo,
    device_key,
)
from .trust import calculate_trust_score, evaluate_trust_factors
from .user_agent import parse_user_agent

logger = structlog.get_logger()

KNOWN_LOCATIONS_KEY = "known-locations:{user_id}"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def hash_signals(signals: DeviceSignals) -> str:
    """Stable SHA-256 over the signal vector, independent of field order."""
    values = signals.model_dump(by_alias=True, exclude_none=True)
    canonical = "|".join(_stringify(values[name]) for name in sorted(values))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def derive_device_id(fingerprint: str, user_id: str | None = None) -> str:
    """Per-account device identity: the same hardware maps to a new id per user."""
    return hashlib.sha256((fingerprint + (user_id or "")).encode("utf-8")).hexdigest()


class DeviceFingerprintService:
    def __init__(
        self,
        store: StateStore,
        geolocator: GeoLocator | None = None,
        config: TrustConfig | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._geolocator = geolocator
        self._config = config or default_trust_config
        self._clock = clock

    def _now_ms(self) -> int:
        return to_epoch_ms(self._clock())

    async def generate_fingerprint(
        self,
        signals: DeviceSignals | dict,
        user_id: str | None = None,
        ip: str | None = None,
    ) -> DeviceInfo:
        """Identify a device from its signals, score it and persist it.

        ``ip`` is the server-observed client address; it is resolved through
        the same geolocator the location check uses.
        """
        if isinstance(signals, dict):
            signals = DeviceSignals.model_validate(signals)

        fingerprint = hash_signals(signals)
        device_id = derive_device_id(fingerprint, user_id)
        parsed = parse_user_agent(signals.user_agent)
        location = await self._resolve_location(ip)
        now_ms = self._now_ms()

        existing = await self.get_device_info(device_id, user_id)

        device = DeviceInfo(
            id=device_id,
            user_id=user_id,
            components=signals,
            fingerprint=fingerprint,
            created_at=existing.created_at if existing else now_ms,
            last_seen=now_ms,
            trusted_at=existing.trusted_at if existing else None,
            metadata=DeviceMetadata(
                browser=BrowserInfo(
                    name=parsed.browser_name,
                    version=parsed.browser_version,
                    engine=parsed.engine_name,
                ),
                os=OsInfo(name=parsed.os_name, version=parsed.os_version),
                device=HardwareInfo(
                    type=parsed.device_type,
                    model=parsed.device_model,
                    vendor=parsed.device_vendor,
                ),
                ip=ip,
                location=location,
            ),
        )
        device.trust_score = await self.calculate_trust_score(device)
        await self._store_device_info(device)

        logger.info(
            "device_fingerprinted",
            device_id=device_id,
            user_id=user_id,
            new_device=existing is None,
            trust_score=round(device.trust_score, 4),
            country=location.country if location else None,
        )
        return device

    async def is_device_trusted(self, device_id: str, user_id: str | None = None) -> bool:
        try:
            device = await self.get_device_info(device_id, user_id)
            if device is None:
                return False
            score = await self.calculate_trust_score(device)
        except Exception:
            # Unknown trust means step-up, never a skipped check
            logger.exception("device_trust_check_failed", device_id=device_id)
            return False
        return score >= self._config.trust_threshold

    async def trust_device(
        self,
        device_id: str,
        user_id: str,
        device_info: dict | None = None,
    ) -> DeviceInfo:
        """Grant full trust after an out-of-band verification (e.g. account recovery).

        Only a record already bound to ``user_id`` or not yet bound to anyone
        can be granted; another user's device is reported as not found.
        """
        device = await self.get_device_info(device_id, user_id)
        if device is None:
            raise DeviceNotFoundError(f"Device {device_id} not found")

        previous_key = device.store_key
        now_ms = self._now_ms()
        device.user_id = user_id
        device.trust_score = 1.0
        device.trusted_at = now_ms
        device.last_seen = now_ms

        await self._store_device_info(device)
        if previous_key != device.store_key:
            await self._store.delete(previous_key)

        logger.info(
            "device_trusted",
            device_id=device_id,
            user_id=user_id,
            verification=(device_info or {}).get("method"),
        )
        return device

    async def get_devices_by_user(self, user_id: str) -> list[DeviceInfo]:
        keys = await self._store.keys(f"device:*:{escape_pattern(user_id)}")
        devices = []
        for key in keys:
            data = await load_json(self._store, key)
            if data:
                device = DeviceInfo.model_validate(data)
                if device.user_id == user_id and key == device.store_key:
                    devices.append(device)
        return devices

    async def update_device_activity(self, device_id: str, user_id: str | None = None) -> None:
        device = await self.get_device_info(device_id, user_id)
        if device is None:
            return
        device.last_seen = self._now_ms()
        await self._store_device_info(device)

    async def get_device_info(
        self, device_id: str, user_id: str | None = None
    ) -> DeviceInfo | None:
        """Look up a device by its exact id.

        With ``user_id`` only ``device:{id}:{user_id}`` and ``device:{id}`` are
        read. Without it, user-bound records of that exact id are scanned for.
        """
        device = await self._load_device(device_key(device_id, user_id), device_id)
        if device is None and user_id:
            device = await self._load_device(device_key(device_id), device_id)
        if device is not None or user_id:
            return device

        keys = await self._store.keys(f"{escape_pattern(device_key(device_id))}:*")
        candidates = []
        for key in keys:
            found = await self._load_device(key, device_id)
            if found is not None:
                candidates.append(found)
        if not candidates:
            return None
        return max(candidates, key=lambda d: (d.last_seen, d.trusted_at or 0))

    async def _load_device(self, key: str, device_id: str) -> DeviceInfo | None:
        data = await load_json(self._store, key)
        if not data:
            return None
        device = DeviceInfo.model_validate(data)
        if device.id != device_id or device.store_key != key:
            return None
        return device

    async def calculate_trust_score(self, device: DeviceInfo) -> float:
        if device.trusted_at is not None:
            return 1.0
        known_countries = await self._get_known_countries(device.user_id)
        factors = evaluate_trust_factors(device, known_countries, self._now_ms(), self._config)
        return calculate_trust_score(factors, self._config)

    async def _resolve_location(self, ip: str | None) -> GeoLocation | None:
        if not ip or self._geolocator is None:
            return None
        try:
            return await self._geolocator.lookup(ip)
        except GeolocationUnavailableError:
            # Without a location the known-location factor is 0, which only lowers trust
            logger.warning("device_geolocation_unavailable", ip=ip, exc_info=True)
            return None

    async def _get_known_countries(self, user_id: str | None) -> set[str]:
        if not user_id:
            return set()
        data = await load_json(self._store, KNOWN_LOCATIONS_KEY.format(user_id=user_id), [])
        return {entry["country"] for entry in data if entry.get("country")}

    async def _store_device_info(self, device: DeviceInfo) -> None:
        await dump_json(
            self._store,
            device.store_key,
            device.model_dump(mode="json", by_alias=True, exclude_none=True),
            self._config.device_ttl_seconds,
        )
        location = device.metadata.location
        if device.user_id and location is not None and location.country:
            await self._update_known_locations(device.user_id, location.country)

    async def _update_known_locations(self, user_id: str, country: str) -> None:
        key = KNOWN_LOCATIONS_KEY.format(user_id=user_id)
        locations = await load_json(self._store, key, [])
        if any(entry.get("country") == country for entry in locations):
            return
        locations.append({"country": country})
        await dump_json(self._store, key, locations, self._config.known_locations_ttl_seconds)
