"""Geographic data for typical customer locations and high-risk jurisdictions."""

import math
import random
from typing import NamedTuple


class Location(NamedTuple):
    city: str
    region: str
    country_code: str
    latitude: float
    longitude: float


US_DIASPORA_LOCATIONS = [
    Location("Boston", "MA", "US", 42.3601, -71.0589),
    Location("Miami", "FL", "US", 25.7617, -80.1918),
    Location("New York", "NY", "US", 40.7128, -74.0060),
    Location("Brooklyn", "NY", "US", 40.6782, -73.9442),
    Location("Newark", "NJ", "US", 40.7357, -74.1724),
    Location("Orlando", "FL", "US", 28.5383, -81.3792),
    Location("Atlanta", "GA", "US", 33.7490, -84.3880),
    Location("Chicago", "IL", "US", 41.8781, -87.6298),
    Location("Los Angeles", "CA", "US", 34.0522, -118.2437),
]

HAITI_LOCATIONS = [
    Location("Port-au-Prince", "Ouest", "HT", 18.5944, -72.3074),
    Location("Cap-Haitien", "Nord", "HT", 19.7578, -72.2044),
    Location("Les Cayes", "Sud", "HT", 18.1940, -73.7504),
    Location("Jacmel", "Sud-Est", "HT", 18.2340, -72.5353),
]

# FATF call-for-action jurisdictions
HIGH_RISK_LOCATIONS = [
    Location("Tehran", "Tehran", "IR", 35.6892, 51.3890),
    Location("Pyongyang", "Pyongyang", "KP", 39.0392, 125.7625),
    Location("Yangon", "Yangon", "MM", 16.8409, 96.1735),
]


def random_home_location(rng: random.Random) -> Location:
    return rng.choice(US_DIASPORA_LOCATIONS)


def random_travel_location(rng: random.Random) -> Location:
    return rng.choice(HAITI_LOCATIONS)


def random_high_risk_location(rng: random.Random) -> Location:
    return rng.choice(HIGH_RISK_LOCATIONS)


def location_to_coordinates(location: Location) -> dict:
    return {"latitude": location.latitude, "longitude": location.longitude}


def location_to_geo(location: Location) -> dict:
    return {"country": location.country_code, "region": location.region, "city": location.city}


def jitter_coordinates(
    rng: random.Random, lat: float, lng: float, radius_km: float = 5.0
) -> tuple[float, float]:
    angle = rng.uniform(0, 2 * math.pi)
    distance = rng.uniform(0, radius_km) / 111.0
    return lat + distance * math.cos(angle), lng + distance * math.sin(angle)
