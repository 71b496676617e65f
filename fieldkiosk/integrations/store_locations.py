"""Known store locations and GPS matching for clock-in verification"""

import logging
import math
from typing import Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000
DEFAULT_MATCH_RADIUS_METERS = 500


class StoreLocation(BaseModel):
    id: str
    store_name: str  # e.g. "HOME DEPOT 0808"
    store_number: str
    store_type: str  # "Lowes" or "Home Depot"
    address: str
    city: str
    state: str
    latitude: float
    longitude: float

    @property
    def full_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state}"


def _store(id, name, number, store_type, address, city, state, lat, lon) -> StoreLocation:
    return StoreLocation(
        id=id,
        store_name=name,
        store_number=number,
        store_type=store_type,
        address=address,
        city=city,
        state=state,
        latitude=lat,
        longitude=lon,
    )


STORE_LOCATIONS: list[StoreLocation] = [
    # Lowes
    _store("lowes-0281", "LOWES 0281", "0281", "Lowes", "1301 Boll Weevil Cir", "Enterprise", "AL", 31.3323, -85.8608),
    _store("lowes-1782", "LOWES 1782", "1782", "Lowes", "298 Rasberry Rd", "Crestview", "FL", 30.7275, -86.5744),
    _store("lowes-2886", "LOWES 2886", "2886", "Lowes", "135 Business Park Rd", "DeFuniak Springs", "FL", 30.6200, -86.1470),
    _store("lowes-0448", "LOWES 0448", "0448", "Lowes", "300 E 23rd St", "Panama City", "FL", 30.1879, -85.6553),
    _store("lowes-2367", "LOWES 2367", "2367", "Lowes", "11751 Panama City Beach Pkwy", "Panama City Beach", "FL", 30.1983, -85.8203),
    _store("lowes-3166", "LOWES 3166", "3166", "Lowes", "4405 Legendary Dr", "Destin", "FL", 30.3918, -86.4199),
    _store("lowes-0438", "LOWES 0438", "0438", "Lowes", "1201 Airport Blvd", "Pensacola", "FL", 30.48, -87.21),
    _store("lowes-2788", "LOWES 2788", "2788", "Lowes", "777 W Nine Mile Rd", "Pensacola", "FL", 30.531, -87.285),
    _store("lowes-1142", "LOWES 1142", "1142", "Lowes", "4301 W Fairfield Dr", "Pensacola", "FL", 30.4345, -87.2791),
    # Home Depot
    _store("hd-0808", "HOME DEPOT 0808", "0808", "Home Depot", "3489 Ross Clark Cir", "Dothan", "AL", 31.2474, -85.4292),
    _store("hd-6303", "HOME DEPOT 6303", "6303", "Home Depot", "409 E 23rd St", "Panama City", "FL", 30.1913, -85.6543),
    _store("hd-8446", "HOME DEPOT 8446", "8446", "Home Depot", "11500 Panama City Beach Pkwy", "Panama City Beach", "FL", 30.1985, -85.8125),
    _store("hd-6377", "HOME DEPOT 6377", "6377", "Home Depot", "4385 Commons Dr W", "Destin", "FL", 30.3889, -86.4410),
    _store("hd-6301", "HOME DEPOT 6301", "6301", "Home Depot", "414B Mary Esther Blvd NW", "Fort Walton Beach", "FL", 30.4236, -86.6422),
    _store("hd-8472", "HOME DEPOT 8472", "8472", "Home Depot", "541 W Nine Mile Rd", "Pensacola", "FL", 30.5300, -87.2850),
    _store("hd-6853", "HOME DEPOT 6853", "6853", "Home Depot", "5309 N Davis Hwy", "Pensacola", "FL", 30.4753, -87.2280),
    _store("hd-6932", "HOME DEPOT 6932", "6932", "Home Depot", "4525 Mobile Hwy", "Pensacola", "FL", 30.4345, -87.2791),
    _store("hd-6368", "HOME DEPOT 6368", "6368", "Home Depot", "4829 US-90", "Pace", "FL", 30.6015, -87.1226),
]


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def find_nearest_store(
    latitude: float,
    longitude: float,
    max_distance_meters: float = DEFAULT_MATCH_RADIUS_METERS,
) -> Optional[tuple[StoreLocation, float]]:
    """Closest known store within range, with its distance; None otherwise"""
    nearest: Optional[StoreLocation] = None
    min_distance = math.inf

    for store in STORE_LOCATIONS:
        distance = calculate_distance(latitude, longitude, store.latitude, store.longitude)
        if distance < min_distance and distance <= max_distance_meters:
            min_distance = distance
            nearest = store

    if nearest is None:
        logger.info(f"⚠️ No store found within {max_distance_meters}m")
        return None

    logger.info(f"📍 Matched store: {nearest.store_name} ({round(min_distance)}m away)")
    return nearest, min_distance
