"""Domain models for customer and service location records."""

from dataclasses import dataclass, field
from typing import Optional, Sequence


@dataclass(slots=True)
class ServiceLocation:
    """A place where a customer is serviced."""

    location_id: Optional[str]
    street_address: Optional[str]
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_primary: bool = False
    access_notes: Optional[str] = None
    formatted_address: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def address(self) -> str:
        """Single-line address handed to the mapping provider."""
        if self.formatted_address:
            return self.formatted_address
        region = " ".join(part for part in (self.state, self.postal_code) if part)
        return ", ".join(part for part in (self.street_address, self.city, region) if part)


@dataclass(slots=True)
class Customer:
    """Represents a customer together with its service locations."""

    customer_id: str
    name: str
    locations: list[ServiceLocation] = field(default_factory=list)


def select_service_location(locations: Sequence[ServiceLocation]) -> Optional[ServiceLocation]:
    """Pick the single location that represents a customer on a route.

    Priority: the primary location, then the first one with both coordinates,
    then the first one listed.
    """
    if not locations:
        return None
    for location in locations:
        if location.is_primary:
            return location
    for location in locations:
        if location.has_coordinates:
            return location
    return locations[0]
