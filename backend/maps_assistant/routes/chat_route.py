import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from maps_assistant.core.exceptions import UnknownError
from maps_assistant.core.logger import logs
from maps_assistant.models.base_model import ChatRequest, ErrorResponse
from maps_assistant.services.Conversation_service import ConversationAssistant

router = APIRouter(prefix="/api/maps", tags=["chat"])

# --- Dependency Injection ---
def get_assistant(request: Request) -> ConversationAssistant:
    return request.app.state.assistant

@router.post("/chat", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def chat_endpoint(
    request: ChatRequest,
    assistant: ConversationAssistant = Depends(get_assistant)
):
    """
    Answers a geographic question using the places, routes and position
    the client has on screen.
    """
    if not request.message:
        return JSONResponse(
            status_code=400,
            content={"error": "Message manquant ou invalide", "details": "Le champ 'message' doit être un texte non vide"}
        )

    try:
        response = await assistant.answer(
            request.message,
            request.places or [],
            request.routes or [],
            request.user_location
        )
        return {"success": True, "response": response}
    except Exception as e:
        error = UnknownError.wrap(e)
        logs.log(logging.ERROR, f"Error in chat_endpoint: {error.message}")
        return JSONResponse(
            status_code=500,
            content={"error": "Erreur lors du traitement de votre question", "details": error.message}
        )
