import logging

from maps_assistant.core.llm_connection import LLMService
from maps_assistant.core.logger import logs
from maps_assistant.models.geo_model import LatLng, Place, Route
from maps_assistant.services.analysis_fallbacks import format_number

SYSTEM_PROMPT = (
    "Tu es un assistant Maps IA expert en navigation, recommandations de lieux et "
    "planification d'itinéraires. Tu réponds toujours en français de manière utile et concise."
)

CHAT_TEMPERATURE = 0.8
CHAT_MAX_TOKENS = 500
MAX_CONTEXT_PLACES = 5
MAX_CONTEXT_ROUTES = 3

EMPTY_ANSWER = "Désolé, je n'ai pas pu traiter votre question. Pouvez-vous la reformuler ?"

RESTAURANT_GUIDANCE = (
    'Pour trouver des restaurants, utilisez la recherche avec "restaurant" suivi de votre '
    "localisation. Je peux vous aider à analyser les options trouvées !"
)
ROUTE_GUIDANCE = (
    "Pour calculer un itinéraire, entrez votre point de départ et votre destination. "
    "Je peux ensuite analyser le trajet et vous donner des conseils !"
)
PARKING_GUIDANCE = (
    'Recherchez "parking" près de votre destination. Les parkings publics sont généralement '
    "indiqués sur la carte avec des informations tarifaires."
)
GENERIC_GUIDANCE = (
    "Je peux vous aider avec la recherche de lieux, le calcul d'itinéraires, et l'analyse "
    "de vos trajets. Que souhaitez-vous faire ?"
)

# Checked in order, first match wins
FALLBACK_RULES = [
    (("restaurant",), RESTAURANT_GUIDANCE),
    (("itinéraire", "aller"), ROUTE_GUIDANCE),
    (("parking",), PARKING_GUIDANCE),
]


def fallback_answer(question: str) -> str:
    lowered = question.lower()
    for keywords, answer in FALLBACK_RULES:
        if any(keyword in lowered for keyword in keywords):
            return answer
    return GENERIC_GUIDANCE


def build_context_prompt(
    question: str,
    places: list[Place],
    routes: list[Route],
    location: LatLng | None = None
) -> str:
    context_places = "\n".join(
        f"- {place.name} ({place.address}) - Note: {format_number(place.rating) if place.rating else 'N/A'}/5"
        for place in places[:MAX_CONTEXT_PLACES]
    )
    context_routes = "\n".join(
        f"- {route.origin} → {route.destination} ({route.distance}, {route.duration})"
        for route in routes[:MAX_CONTEXT_ROUTES]
    )
    location_context = (
        f"Position actuelle: {location.lat:.4f}, {location.lng:.4f}"
        if location else "Position non disponible"
    )

    return f"""
Tu es un assistant Maps IA spécialisé dans la navigation et les recommandations géographiques.

Question: {question}

Contexte disponible:
{location_context}

Lieux récents:
{context_places or 'Aucun lieu récent'}

Itinéraires récents:
{context_routes or 'Aucun itinéraire récent'}

Réponds de manière utile et concise en français. Si tu n'as pas assez d'informations spécifiques, donne des conseils généraux pertinents.
"""


class ConversationAssistant:
    """Answers free-form geographic questions; falls back to keyword guidance."""

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def answer(
        self,
        question: str,
        places: list[Place] | None = None,
        routes: list[Route] | None = None,
        location: LatLng | None = None
    ) -> str:
        prompt = build_context_prompt(question, places or [], routes or [], location)
        try:
            content = await self.llm.complete(
                SYSTEM_PROMPT,
                prompt,
                temperature=CHAT_TEMPERATURE,
                max_tokens=CHAT_MAX_TOKENS
            )
        except Exception as e:
            logs.log(logging.ERROR, f"LLM chat call failed: {str(e)}")
            return fallback_answer(question)

        return content or EMPTY_ANSWER
