"""Statistical distribution helpers for realistic data generation."""

import random
import uuid


def log_normal_sample(
    rng: random.Random,
    mean: float,
    std: float,
    min_val: float = 0.01,
    max_val: float | None = None,
) -> float:
    value = rng.lognormvariate(mean, std)
    value = max(value, min_val)
    if max_val is not None:
        value = min(value, max_val)
    return round(value, 2)


def small_amount(rng: random.Random, ceiling: float = 100.0) -> float:
    return round(rng.uniform(1.0, ceiling - 1.0), 2)


def round_amount(rng: random.Random, minimum: int = 1_100, maximum: int = 9_900) -> float:
    return float(rng.randrange(minimum, maximum + 1, 100))


def generate_ip_address(rng: random.Random, first_octets: tuple[int, ...] = ()) -> str:
    """Random publicly routable IPv4 address, optionally inside a given prefix."""
    # 11-99 avoids the 10.0.0.0/8 private block
    octets = list(first_octets) or [rng.randint(11, 99)]
    while len(octets) < 3:
        octets.append(rng.randint(0, 255))
    octets.append(rng.randint(1, 254))
    return ".".join(str(o) for o in octets[:4])


def generate_device_id(rng: random.Random) -> str:
    return f"device_{uuid.UUID(int=rng.getrandbits(128), version=4).hex[:16]}"
