"""Location checks: IP geolocation, suspicious countries and large jumps."""

import math

from src.shared.geolocation import GeoLocator
from src.shared.state_store import StateStore, dump_json, load_json

from ..config import RiskConfig
from ..models import CheckName, CheckResult, LocationTrigger, TransactionContext
from .base import FULL_TRUST, EvaluationScope, RiskCheck

EARTH_RADIUS_KM = 6371.0
LAST_LOCATION_KEY = "last-location:{user_id}"

RISK_UNKNOWN_LOCATION = 20
RISK_SUSPICIOUS_COUNTRY = 40
RISK_SIGNIFICANT_CHANGE = 30
TRUST_PENALTY_UNKNOWN_LOCATION = 20
TRUST_PENALTY_SUSPICIOUS_COUNTRY = 40
TRUST_PENALTY_SIGNIFICANT_CHANGE = 25


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance in km between two lat/lon points."""
    lat1_r, lon1_r = math.radians(lat1), math.radians(lon1)
    lat2_r, lon2_r = math.radians(lat2), math.radians(lon2)
    dlat = lat2_r - lat1_r
    dlon = lon2_r - lon1_r
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class LocationCheck(RiskCheck):
    name = CheckName.LOCATION

    def __init__(self, store: StateStore, geolocator: GeoLocator) -> None:
        super().__init__(store)
        self._geolocator = geolocator

    async def evaluate(
        self,
        context: TransactionContext,
        scope: EvaluationScope,
        config: RiskConfig,
    ) -> CheckResult:
        thresholds = config.location
        triggers: list[LocationTrigger] = []
        risk = 0
        trust = FULL_TRUST
        evidence: dict = {}

        geo = await self._geolocator.lookup(context.ip)
        if geo is None:
            triggers.append(LocationTrigger.UNKNOWN_LOCATION)
            risk += RISK_UNKNOWN_LOCATION
            trust -= TRUST_PENALTY_UNKNOWN_LOCATION
        else:
            evidence["country"] = geo.country
            if geo.country.upper() in thresholds.suspicious_country_codes:
                triggers.append(LocationTrigger.SUSPICIOUS_COUNTRY)
                risk += RISK_SUSPICIOUS_COUNTRY
                trust -= TRUST_PENALTY_SUSPICIOUS_COUNTRY

        key = LAST_LOCATION_KEY.format(user_id=context.user_id)
        last = await load_json(self._store, key)
        current = context.location

        if last and current is not None:
            distance = haversine(
                last["latitude"], last["longitude"], current.latitude, current.longitude
            )
            evidence["distance_km"] = round(distance, 3)
            if distance > thresholds.significant_change_km:
                triggers.append(LocationTrigger.SIGNIFICANT_LOCATION_CHANGE)
                risk += RISK_SIGNIFICANT_CHANGE
                trust -= TRUST_PENALTY_SIGNIFICANT_CHANGE

        if current is not None:
            await dump_json(
                self._store,
                key,
                {"latitude": current.latitude, "longitude": current.longitude},
                thresholds.last_location_ttl_days * 24 * 60 * 60,
            )

        return self._result(
            risk_score=risk, triggers=triggers, trust_score=trust, evidence=evidence
        )
