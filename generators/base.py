"""Base generator class with a seeded RNG and output helpers."""

import random
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any


class BaseGenerator:
    def __init__(self, config: dict[str, Any] | None = None, seed: int = 42):
        self.config = config or {}
        self.seed = seed
        self.rng = random.Random(seed)

    def _uuid(self) -> str:
        """Generate a deterministic UUID from the seeded RNG."""
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))

    def _base_time(self) -> datetime:
        raw = self.config.get("start_time")
        if raw:
            return datetime.fromisoformat(raw).astimezone(UTC)
        return datetime(2026, 1, 1, tzinfo=UTC)

    def _random_datetime(self, start: datetime, end: datetime) -> datetime:
        """Generate a random datetime between start and end."""
        delta = end - start
        random_seconds = self.rng.randint(0, max(1, int(delta.total_seconds())))
        return start + timedelta(seconds=random_seconds)

    def _weighted_choice(self, options: dict[str, float]) -> str:
        """Choose from weighted options."""
        items = list(options.keys())
        weights = list(options.values())
        return self.rng.choices(items, weights=weights, k=1)[0]
