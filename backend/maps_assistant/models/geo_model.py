from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# --- Geo primitives ---
class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)

# --- Places ---
class Review(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: str
    rating: float = 0
    text: str = ""
    time: int = 0

class Place(BaseModel):
    """A place as returned by text search or details lookup.

    Serialized with camelCase keys (priceLevel, openingHours, phoneNumber).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Missing id, address or location are tolerated for client-supplied places
    id: str = ""
    name: str
    address: str = ""
    location: LatLng = LatLng(lat=0, lng=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    price_level: Optional[int] = Field(None, ge=0, le=4, alias="priceLevel")
    types: List[str] = []
    photos: Optional[List[str]] = None
    opening_hours: Optional[List[str]] = Field(None, alias="openingHours")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    website: Optional[str] = None
    reviews: Optional[List[Review]] = None

# --- Routes ---
class RouteStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    instruction: str = ""  # provider HTML, kept verbatim
    distance: str = ""
    duration: str = ""
    start_location: LatLng = LatLng(lat=0, lng=0)
    end_location: LatLng = LatLng(lat=0, lng=0)

class Route(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    origin: str = ""
    destination: str = ""
    distance: str
    duration: str
    steps: List[RouteStep] = []
    overview_polyline: str = ""
