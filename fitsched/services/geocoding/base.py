"""Provider-agnostic geocoding interfaces."""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class AddressQuery(BaseModel):
    street: str
    building_number: str
    zip_code: str
    city: str

    def to_query(self) -> str:
        """Free-form search string: "street building, zip city"."""
        return f"{self.street} {self.building_number}, {self.zip_code} {self.city}"

    def cache_material(self) -> dict[str, str]:
        return {
            "street": self.street.strip().lower(),
            "building_number": self.building_number.strip().lower(),
            "zip_code": self.zip_code.strip().lower(),
            "city": self.city.strip().lower(),
        }


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class GeocodingProvider(ABC):
    name: str = "unknown"

    @abstractmethod
    async def resolve(self, query: AddressQuery) -> Optional[Coordinates]:
        """
        Resolve an address to coordinates.

        Returns None when the provider has no match. Raises
        UpstreamUnavailableException when the provider cannot be reached.
        """
