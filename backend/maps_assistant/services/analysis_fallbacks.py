"""
Deterministic analyses used when the language model cannot be relied on.

Tier 1 (canned) is used when the model answered with unusable text, tier 2
(heuristic) when the call itself failed. Route difficulty is computed
differently in each tier: step count for tier 1, distance for tier 2.
Both rules are kept as they are.
"""
import re

from maps_assistant.models.analysis_model import PlaceAnalysis, RouteAnalysis
from maps_assistant.models.geo_model import Place, Route

DEFAULT_CATEGORY = "Lieu"
DEFAULT_PRICE_RANGE = "€€"

_LEADING_NUMBER = re.compile(r"^\d+(?:\.\d+)?|^\.\d+")


def format_number(value: float) -> str:
    """4.0 -> "4", 4.5 -> "4.5"."""
    return f"{value:g}"


def parse_distance(distance: str) -> float | None:
    """
    Numeric value of a formatted distance: every character other than digits
    and dots is dropped, then the leading number is read ("1,250.5 km" -> 1250.5).
    Returns None when nothing numeric is left.
    """
    stripped = re.sub(r"[^\d.]", "", distance or "")
    match = _LEADING_NUMBER.match(stripped)
    return float(match.group()) if match else None


# --- Tier 1 ---

def canned_place_analysis(place: Place) -> PlaceAnalysis:
    return PlaceAnalysis(
        sentiment="neutral",
        category=place.types[0] if place.types else DEFAULT_CATEGORY,
        highlights=["Lieu intéressant à visiter"],
        recommendations=["Vérifiez les horaires d'ouverture"],
        price_range=DEFAULT_PRICE_RANGE,
        accessibility="Information non disponible",
        best_time_to_visit="Selon vos préférences",
        summary=f"{place.name} est un lieu situé à {place.address}.",
    )


def canned_route_analysis(route: Route) -> RouteAnalysis:
    return RouteAnalysis(
        difficulty="moderate" if len(route.steps) > 10 else "easy",
        scenic_value="medium",
        traffic_prediction="Trafic variable selon l'heure. Évitez les heures de pointe.",
        alternative_suggestions=[
            "Considérez les transports en commun",
            "Vérifiez les itinéraires alternatifs",
        ],
        points_of_interest=["Aires de repos", "Stations-service", "Points de vue"],
        travel_tips=[
            "Préparez votre véhicule avant le départ",
            "Gardez de l'eau et des collations",
            "Vérifiez la météo",
        ],
        summary=f"Itinéraire de {route.distance} en {route.duration} de {route.origin} vers {route.destination}.",
    )


# --- Tier 2 ---

def sentiment_from_rating(rating: float | None) -> str:
    # A rating of 0 means "not rated"
    if rating and rating >= 4:
        return "positive"
    if rating and rating < 3:
        return "negative"
    return "neutral"


def price_range_from_level(price_level: int | None) -> str:
    return "€" * price_level if price_level else DEFAULT_PRICE_RANGE


def difficulty_from_distance(distance: str) -> str:
    value = parse_distance(distance)
    if value is None:
        return "easy"
    if value > 200:
        return "difficult"
    if value > 100:
        return "moderate"
    return "easy"


def heuristic_place_analysis(place: Place) -> PlaceAnalysis:
    rating_note = f" Il a une note de {format_number(place.rating)}/5." if place.rating else ""
    return PlaceAnalysis(
        sentiment=sentiment_from_rating(place.rating),
        category=place.types[0] if place.types else DEFAULT_CATEGORY,
        highlights=[
            f"Note de {format_number(place.rating)}/5" if place.rating else "Lieu à découvrir",
            "Situé dans un quartier accessible",
            "Informations détaillées disponibles",
        ],
        recommendations=[
            "Vérifiez les horaires d'ouverture avant votre visite",
            "Consultez les avis récents",
            "Préparez votre itinéraire à l'avance",
        ],
        price_range=price_range_from_level(place.price_level),
        accessibility="Informations d'accessibilité à vérifier sur place",
        best_time_to_visit="Selon vos préférences et la météo",
        summary=f"{place.name} est situé à {place.address}.{rating_note}",
    )


def heuristic_route_analysis(route: Route) -> RouteAnalysis:
    return RouteAnalysis(
        difficulty=difficulty_from_distance(route.distance),
        scenic_value="medium",
        traffic_prediction="Trafic variable selon l'heure et le jour. Consultez les conditions en temps réel.",
        alternative_suggestions=[
            "Vérifiez les options de transport en commun",
            "Considérez les itinéraires secondaires pour éviter les bouchons",
        ],
        points_of_interest=[
            "Aires de repos sur autoroute",
            "Stations-service",
            "Points de vue panoramiques",
        ],
        travel_tips=[
            "Vérifiez l'état de votre véhicule avant le départ",
            "Emportez de l'eau et des collations",
            "Consultez la météo et les conditions de circulation",
            "Prévoyez des pauses régulières",
        ],
        summary=(
            f"Trajet de {route.distance} estimé à {route.duration}, reliant {route.origin} "
            f"à {route.destination} avec {len(route.steps)} étapes principales."
        ),
    )
