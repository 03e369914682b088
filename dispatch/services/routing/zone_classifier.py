"""
Zone Classifier

Maps a delivery address to one of the tenant's zones:
- the state code picks a direction from the partition table
- the direction picks the active zone configured for it
- unknown states fall back to the default direction (north)

Coordinates are accepted but not used yet; classification is by state only.
"""
from typing import Dict, Iterable, Mapping, Optional, Sequence
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from dispatch.core.config import settings
from dispatch.models.zone import Zone, ZoneDirection

log = logging.getLogger(__name__)

DIRECTIONS = tuple(d.value for d in ZoneDirection)

DEFAULT_PARTITIONS: Dict[str, tuple] = {
    "north": ("WI", "MI", "MN", "ND", "SD", "IL", "IA", "IN", "OH", "NE"),
    "south": ("TX", "FL", "GA", "AL", "MS", "LA", "SC", "NC", "TN", "KY", "AR", "OK"),
    "east": ("NY", "NJ", "PA", "CT", "MA", "VT", "NH", "ME", "RI", "MD", "DE", "DC", "VA", "WV"),
    "west": ("CA", "OR", "WA", "NV", "AZ", "UT", "ID", "MT", "WY", "CO", "NM", "AK", "HI", "KS", "MO"),
}


def normalize_state(state: Optional[str]) -> str:
    return (state or "").strip().upper()


class ZonePartitions:
    """State -> direction lookup built from a {direction: [states]} mapping"""

    def __init__(self, partitions: Mapping[str, Iterable[str]], default_direction: str = "north"):
        if default_direction not in DIRECTIONS:
            raise ValueError(f"Unknown default direction '{default_direction}'")

        self.default_direction = default_direction
        self._by_state: Dict[str, str] = {}

        for direction, states in partitions.items():
            if direction not in DIRECTIONS:
                raise ValueError(f"Unknown direction '{direction}' in partition table")
            for state in states:
                code = normalize_state(state)
                owner = self._by_state.get(code)
                if owner and owner != direction:
                    raise ValueError(f"State {code} listed under both {owner} and {direction}")
                self._by_state[code] = direction

    def __contains__(self, state: str) -> bool:
        return normalize_state(state) in self._by_state

    def states(self) -> Sequence[str]:
        return sorted(self._by_state)

    def direction_for(self, state: Optional[str]) -> str:
        code = normalize_state(state)
        direction = self._by_state.get(code)
        if direction is None:
            log.warning("no zone partition for state=%r, falling back to %s", code, self.default_direction)
            return self.default_direction
        return direction


class ZoneDirectory:
    """Direction -> zone id for one tenant's active zones"""

    def __init__(self, zones_by_direction: Mapping[str, str]):
        self._zones = dict(zones_by_direction)

    @classmethod
    def from_zones(cls, zones: Iterable[Zone]) -> "ZoneDirectory":
        # first active zone by name wins when several share a direction
        mapping: Dict[str, str] = {}
        for zone in sorted(zones, key=lambda z: z.name):
            if not zone.is_active:
                continue
            mapping.setdefault(zone.direction, zone.id)
        return cls(mapping)

    def zone_for(self, direction: str) -> Optional[str]:
        return self._zones.get(direction)

    def __bool__(self) -> bool:
        return bool(self._zones)


default_partitions = ZonePartitions(DEFAULT_PARTITIONS, default_direction=settings.default_zone_direction)


def classify(
    delivery_state: str,
    coordinates: Optional[dict] = None,
    *,
    directory: ZoneDirectory,
    partitions: Optional[ZonePartitions] = None,
) -> Optional[str]:
    """
    Return the zone id for a delivery state.

    Returns None only when the tenant has no active zone for the resolved
    direction nor for the default direction.
    """
    partitions = partitions or default_partitions
    direction = partitions.direction_for(delivery_state)

    zone_id = directory.zone_for(direction)
    if zone_id is None and direction != partitions.default_direction:
        log.warning("no active %s zone configured, using %s zone", direction, partitions.default_direction)
        zone_id = directory.zone_for(partitions.default_direction)
    return zone_id


async def load_zone_directory(db: AsyncSession, tenant_id: int) -> ZoneDirectory:
    result = await db.execute(
        select(Zone).where(
            Zone.tenant_id == tenant_id,
            Zone.is_active == True
        )
    )
    return ZoneDirectory.from_zones(result.scalars().all())
