import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from maps_assistant.core.exceptions import InvalidInputError, ProviderError, UnknownError
from maps_assistant.core.llm_connection import LLMService
from maps_assistant.core.logger import logs
from maps_assistant.routes.analysis_route import router as analysis_router
from maps_assistant.routes.chat_route import router as chat_router
from maps_assistant.routes.geo_route import router as geo_router
from maps_assistant.services.Analysis_service import AnalysisEngine
from maps_assistant.services.Conversation_service import ConversationAssistant
from maps_assistant.services.Geo_service import GeoQueryClient

@asynccontextmanager
async def lifespan(app: FastAPI):
    # One set of provider handles per process, closed on shutdown
    llm = LLMService()
    app.state.geo_client = GeoQueryClient()
    app.state.analysis_engine = AnalysisEngine(llm)
    app.state.assistant = ConversationAssistant(llm)
    logs.log(logging.INFO, "Maps AI Assistant started")
    try:
        yield
    finally:
        await app.state.geo_client.aclose()
        logs.log(logging.INFO, "Maps AI Assistant stopped")

app = FastAPI(title="Maps AI Assistant", lifespan=lifespan)
app.include_router(analysis_router)
app.include_router(chat_router)
app.include_router(geo_router)

# --- Error mapping ---
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logs.log(logging.WARNING, f"Invalid request body on {request.url.path}", extra={"errors": exc.errors()})
    return JSONResponse(
        status_code=400,
        content={"error": "Requête invalide", "details": str(exc.errors())}
    )

@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content=exc.to_payload())

@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logs.log(logging.ERROR, f"Provider error on {request.url.path}: {exc.message}", extra={"status": exc.status})
    return JSONResponse(status_code=502, content=exc.to_payload())

@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception):
    error = UnknownError.wrap(exc)
    logs.log(logging.ERROR, f"Unhandled error on {request.url.path}: {error.message}")
    return JSONResponse(status_code=500, content=error.to_payload())

# --- Root Endpoint ---
@app.get("/")
async def root():
    return {
        "message": "Welcome to Maps AI Assistant API",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "analyze_place": "/api/maps/analyze-place",
            "analyze_route": "/api/maps/analyze-route",
            "chat": "/api/maps/chat",
            "search": "/api/maps/search",
            "route": "/api/maps/route",
            "docs": "/docs"
        },
        "version": "1.0.0"
    }

# --- Health Check ---
@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Maps AI Assistant"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("maps_assistant.main:app", host="0.0.0.0", port=8000, reload=True)
