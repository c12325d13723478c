"""Synthetic evaluation contexts with injected fraud scenarios.

Each record is ``{"scenario", "timestamp", "geo", "context"}``: ``context``
validates as a TransactionContext, ``geo`` is what the context's IP resolves
to, so a replay can serve lookups without a network.
"""

from datetime import datetime, timedelta
from typing import Any

from .base import BaseGenerator
from .utils.distributions import (
    generate_device_id,
    generate_ip_address,
    log_normal_sample,
    round_amount,
    small_amount,
)
from .utils.geography import (
    Location,
    jitter_coordinates,
    location_to_coordinates,
    location_to_geo,
    random_high_risk_location,
    random_home_location,
    random_travel_location,
)

DEFAULT_SCENARIO_WEIGHTS = {
    "normal": 0.70,
    "login": 0.08,
    "velocity_burst": 0.05,
    "high_amount": 0.04,
    "round_amount": 0.04,
    "suspicious_country": 0.03,
    "location_jump": 0.03,
    "device_hopping": 0.03,
}


class ContextGenerator(BaseGenerator):
    def generate(self, num_contexts: int = 1000) -> list[dict[str, Any]]:
        config = self.config
        num_users = config.get("num_users", 100)
        time_span = config.get("time_span_days", 7)
        weights = config.get("scenario_weights", DEFAULT_SCENARIO_WEIGHTS)
        amount_dist = config.get(
            "amount_distribution", {"log_normal_mean": 4.0, "log_normal_std": 1.0}
        )
        base_time = self._base_time()
        end_time = base_time + timedelta(days=time_span)

        users = [self._make_user() for _ in range(num_users)]
        records: list[dict[str, Any]] = []

        while len(records) < num_contexts:
            user = self.rng.choice(users)
            scenario = self._weighted_choice(weights)
            at = self._random_datetime(base_time, end_time)

            if scenario == "velocity_burst":
                for i in range(self.rng.randint(4, 6)):
                    records.append(
                        self._record(
                            scenario,
                            user,
                            at + timedelta(seconds=40 * i),
                            amount=small_amount(self.rng),
                        )
                    )
            elif scenario == "location_jump":
                records.append(self._record("normal", user, at, amount=self._amount(amount_dist)))
                away = random_travel_location(self.rng)
                records.append(
                    self._record(
                        scenario,
                        user,
                        at + timedelta(minutes=self.rng.randint(5, 30)),
                        amount=self._amount(amount_dist),
                        location=away,
                        ip=generate_ip_address(self.rng, (self.rng.randint(150, 168),)),
                    )
                )
            elif scenario == "device_hopping":
                for i in range(self.rng.randint(4, 6)):
                    records.append(
                        self._record(
                            scenario,
                            user,
                            at + timedelta(minutes=10 * i),
                            amount=self._amount(amount_dist),
                            device_id=generate_device_id(self.rng),
                        )
                    )
            elif scenario == "suspicious_country":
                location = random_high_risk_location(self.rng)
                records.append(
                    self._record(
                        scenario,
                        user,
                        at,
                        amount=self._amount(amount_dist),
                        location=location,
                        ip=generate_ip_address(self.rng, (self.rng.randint(200, 202),)),
                    )
                )
            elif scenario == "high_amount":
                amount = round(self.rng.uniform(5_001, 9_000), 2)
                records.append(self._record(scenario, user, at, amount=amount))
            elif scenario == "round_amount":
                records.append(self._record(scenario, user, at, amount=round_amount(self.rng)))
            elif scenario == "login":
                records.append(self._record(scenario, user, at, amount=0.0, action_type="LOGIN"))
            else:
                records.append(self._record(scenario, user, at, amount=self._amount(amount_dist)))

        records = records[:num_contexts]
        records.sort(key=lambda r: r["timestamp"])
        return records

    def _make_user(self) -> dict[str, Any]:
        return {
            "user_id": self._uuid(),
            "home": random_home_location(self.rng),
            "device_id": generate_device_id(self.rng),
            "ip": generate_ip_address(self.rng),
        }

    def _amount(self, dist: dict[str, float]) -> float:
        return log_normal_sample(
            self.rng,
            dist["log_normal_mean"],
            dist["log_normal_std"],
            min_val=1.0,
            max_val=4_000.0,
        )

    def _record(
        self,
        scenario: str,
        user: dict[str, Any],
        at: datetime,
        amount: float,
        action_type: str = "TRANSACTION",
        location: Location | None = None,
        ip: str | None = None,
        device_id: str | None = None,
    ) -> dict[str, Any]:
        location = location or user["home"]
        lat, lng = jitter_coordinates(self.rng, location.latitude, location.longitude)
        coordinates = location_to_coordinates(location._replace(latitude=lat, longitude=lng))
        return {
            "scenario": scenario,
            "timestamp": at.isoformat(),
            "geo": location_to_geo(location),
            "context": {
                "user_id": user["user_id"],
                "amount": amount,
                "type": action_type,
                "device_id": device_id or user["device_id"],
                "ip": ip or user["ip"],
                "location": coordinates,
                "metadata": {"source": "synthetic"},
            },
        }
