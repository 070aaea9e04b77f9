from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

from maps_assistant.models.geo_model import LatLng, Place, Route

# --- API Request Models ---
# Required fields are optional here so that the handlers can answer 400
# with the French error message instead of a bare validation error.
class AnalyzePlaceRequest(BaseModel):
    place: Optional[Place] = None

class AnalyzeRouteRequest(BaseModel):
    route: Optional[Route] = None

class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = Field(None, description="User's question")
    places: Optional[List[Place]] = None
    routes: Optional[List[Route]] = None
    user_location: Optional[LatLng] = Field(None, alias="userLocation")

class SearchRequest(BaseModel):
    query: str = ""
    near: Optional[LatLng] = None

class RouteRequest(BaseModel):
    origin: str = ""
    destination: str = ""

# --- API Response Models ---
class ErrorResponse(BaseModel):
    error: str
    details: str
