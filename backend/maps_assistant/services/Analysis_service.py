import json
import logging

from pydantic import ValidationError

from maps_assistant.core.exceptions import ParseError
from maps_assistant.core.llm_connection import LLMService
from maps_assistant.core.logger import logs
from maps_assistant.models.analysis_model import AnalysisResult, PlaceAnalysis, RouteAnalysis, Tier
from maps_assistant.models.geo_model import Place, Route
from maps_assistant.services.analysis_fallbacks import (
    canned_place_analysis,
    canned_route_analysis,
    format_number,
    heuristic_place_analysis,
    heuristic_route_analysis,
)

PLACE_SYSTEM_PROMPT = (
    "Tu es un expert en analyse de lieux touristiques et commerciaux. "
    "Tu fournis des analyses détaillées et utiles pour les voyageurs."
)
ROUTE_SYSTEM_PROMPT = (
    "Tu es un expert en navigation et planification d'itinéraires. "
    "Tu fournis des analyses détaillées pour optimiser les voyages."
)

ANALYSIS_TEMPERATURE = 0.7
ANALYSIS_MAX_TOKENS = 800
MAX_PROMPT_REVIEWS = 3
MAX_PROMPT_STEPS = 5


def build_place_prompt(place: Place) -> str:
    rating = format_number(place.rating) if place.rating else "Non disponible"
    reviews = " | ".join(r.text for r in (place.reviews or [])[:MAX_PROMPT_REVIEWS]) or "Aucun avis"
    return f"""
Analyse ce lieu et fournis une analyse détaillée en JSON :

Lieu: {place.name}
Adresse: {place.address}
Note: {rating}/5
Types: {', '.join(place.types)}
Avis: {reviews}

Fournis une analyse JSON avec ces champs :
- sentiment: "positive", "negative", ou "neutral"
- category: catégorie principale du lieu
- highlights: array de 3-5 points forts
- recommendations: array de 3-4 recommandations
- priceRange: estimation du budget ("€", "€€", "€€€", "€€€€")
- accessibility: évaluation de l'accessibilité
- bestTimeToVisit: meilleur moment pour visiter
- summary: résumé en 2-3 phrases

Réponds uniquement avec le JSON, sans texte supplémentaire.
"""


def build_route_prompt(route: Route) -> str:
    steps = "\n".join(
        f"{i + 1}. {step.instruction} ({step.distance})"
        for i, step in enumerate(route.steps[:MAX_PROMPT_STEPS])
    )
    return f"""
Analyse cet itinéraire et fournis une analyse détaillée en JSON :

Itinéraire: {route.origin} → {route.destination}
Distance: {route.distance}
Durée: {route.duration}
Nombre d'étapes: {len(route.steps)}

Principales étapes:
{steps}

Fournis une analyse JSON avec ces champs :
- difficulty: "easy", "moderate", ou "difficult"
- scenic_value: "low", "medium", ou "high"
- traffic_prediction: prédiction du trafic et conseils
- alternative_suggestions: array de 2-3 suggestions d'alternatives
- points_of_interest: array de 3-5 points d'intérêt sur le trajet
- travel_tips: array de 3-4 conseils de voyage
- summary: résumé en 2-3 phrases

Réponds uniquement avec le JSON, sans texte supplémentaire.
"""


def parse_analysis(text: str, model: type[PlaceAnalysis] | type[RouteAnalysis]):
    """
    Reads the completion as one JSON object of the target shape.
    Field values are not checked against their expected vocabularies.
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ParseError("Réponse du modèle non JSON", details=str(e)) from e
    if not isinstance(data, dict):
        raise ParseError("Réponse du modèle non objet", details=type(data).__name__)
    try:
        return model.model_validate(data, strict=True)
    except ValidationError as e:
        raise ParseError("Réponse du modèle incomplète", details=str(e)) from e


class AnalysisEngine:
    """
    Narrative analysis of places and routes.

    Runs a three-tier pipeline and never raises:
      0. the model's JSON answer, trusted as is;
      1. a canned analysis when the answer cannot be parsed;
      2. a rating/distance heuristic when the call fails.
    """

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def _request_completion(self, system_prompt: str, user_prompt: str) -> str | None:
        """Completion text, or None when the call failed or came back empty."""
        try:
            content = await self.llm.complete(
                system_prompt,
                user_prompt,
                temperature=ANALYSIS_TEMPERATURE,
                max_tokens=ANALYSIS_MAX_TOKENS,
            )
        except Exception as e:
            logs.log(logging.ERROR, f"LLM analysis call failed: {str(e)}")
            return None
        if not content:
            logs.log(logging.ERROR, "LLM analysis call returned an empty completion")
            return None
        return content

    async def _run(self, label, system_prompt, user_prompt, model, canned, heuristic) -> AnalysisResult:
        content = await self._request_completion(system_prompt, user_prompt)
        if content is None:
            logs.log(logging.WARNING, f"Heuristic analysis used for {label}")
            return AnalysisResult(analysis=heuristic(), tier=Tier.HEURISTIC)
        try:
            analysis = parse_analysis(content, model)
        except ParseError as e:
            logs.log(logging.WARNING, f"Canned analysis used for {label}: {e.message}")
            return AnalysisResult(analysis=canned(), tier=Tier.CANNED)
        logs.log(logging.INFO, f"Model analysis produced for {label}")
        return AnalysisResult(analysis=analysis, tier=Tier.MODEL)

    async def run_place(self, place: Place) -> AnalysisResult:
        return await self._run(
            f"place '{place.name}'",
            PLACE_SYSTEM_PROMPT,
            build_place_prompt(place),
            PlaceAnalysis,
            canned=lambda: canned_place_analysis(place),
            heuristic=lambda: heuristic_place_analysis(place),
        )

    async def run_route(self, route: Route) -> AnalysisResult:
        return await self._run(
            f"route '{route.origin} → {route.destination}'",
            ROUTE_SYSTEM_PROMPT,
            build_route_prompt(route),
            RouteAnalysis,
            canned=lambda: canned_route_analysis(route),
            heuristic=lambda: heuristic_route_analysis(route),
        )

    async def analyze_place(self, place: Place) -> PlaceAnalysis:
        return (await self.run_place(place)).analysis

    async def analyze_route(self, route: Route) -> RouteAnalysis:
        return (await self.run_route(route)).analysis

    async def analyze(self, entity: Place | Route) -> PlaceAnalysis | RouteAnalysis:
        if isinstance(entity, Place):
            return await self.analyze_place(entity)
        if isinstance(entity, Route):
            return await self.analyze_route(entity)
        raise TypeError(f"Cannot analyze {type(entity).__name__}")
