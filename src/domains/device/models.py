"""Pydantic models for device fingerprinting.

Stored records use camelCase keys so they stay readable by the other
services sharing the ephemeral store.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.shared.geolocation import GeoLocation


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeviceSignals(_CamelModel):
    """Client-collected signal vector. Unknown signals are kept and hashed too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    user_agent: str = ""
    language: str | None = None
    color_depth: int | None = None
    device_memory: float | None = None
    hardware_concurrency: int | None = None
    screen_resolution: list[int] | None = None
    available_screen_resolution: list[int] | None = None
    timezone_offset: int | None = None
    timezone: str | None = None
    session_storage: bool | None = None
    local_storage: bool | None = None
    indexed_db: bool | None = None
    add_behavior: bool | None = None
    open_database: bool | None = None
    cpu_class: str | None = None
    platform: str | None = None
    plugins: list[str] | None = None
    canvas: str | None = None
    webgl: str | None = None
    webgl_vendor_and_renderer: str | None = None
    ad_block: bool | None = None
    has_lied_languages: bool | None = None
    has_lied_resolution: bool | None = None
    has_lied_os: bool | None = None
    has_lied_browser: bool | None = None
    touch_support: list[int | bool] | None = None
    fonts: list[str] | None = None
    audio: str | None = None


class BrowserInfo(_CamelModel):
    name: str | None = None
    version: str | None = None
    engine: str | None = None


class OsInfo(_CamelModel):
    name: str | None = None
    version: str | None = None


class HardwareInfo(_CamelModel):
    type: str | None = None
    model: str | None = None
    vendor: str | None = None


class DeviceMetadata(_CamelModel):
    browser: BrowserInfo = Field(default_factory=BrowserInfo)
    os: OsInfo = Field(default_factory=OsInfo)
    device: HardwareInfo = Field(default_factory=HardwareInfo)
    ip: str | None = None
    location: GeoLocation | None = None


class DeviceInfo(_CamelModel):
    id: str
    user_id: str | None = None
    components: DeviceSignals
    fingerprint: str
    created_at: int
    last_seen: int
    trust_score: float = Field(default=0.0, ge=0.0, le=1.0)
    # Epoch ms of an explicit out-of-band trust grant
    trusted_at: int | None = None
    metadata: DeviceMetadata = Field(default_factory=DeviceMetadata)

    @property
    def store_key(self) -> str:
        return device_key(self.id, self.user_id)


def device_key(device_id: str, user_id: str | None = None) -> str:
    return f"device:{device_id}:{user_id}" if user_id else f"device:{device_id}"
