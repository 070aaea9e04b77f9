from dataclasses import dataclass
from enum import IntEnum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Union

class PlaceAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sentiment: str  # positive | negative | neutral
    category: str
    highlights: List[str]
    recommendations: List[str]
    price_range: str = Field(..., alias="priceRange")  # "€" .. "€€€€"
    accessibility: str
    best_time_to_visit: str = Field(..., alias="bestTimeToVisit")
    summary: str

class RouteAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    difficulty: str  # easy | moderate | difficult
    scenic_value: str  # low | medium | high
    traffic_prediction: str
    alternative_suggestions: List[str]
    points_of_interest: List[str]
    travel_tips: List[str]
    summary: str

class Tier(IntEnum):
    """Which stage of the analysis pipeline produced the record."""
    MODEL = 0
    CANNED = 1
    HEURISTIC = 2

@dataclass(frozen=True)
class AnalysisResult:
    analysis: Union[PlaceAnalysis, RouteAnalysis]
    tier: Tier
