import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from maps_assistant.core.exceptions import UnknownError
from maps_assistant.core.logger import logs
from maps_assistant.models.base_model import AnalyzePlaceRequest, AnalyzeRouteRequest, ErrorResponse
from maps_assistant.services.Analysis_service import AnalysisEngine

router = APIRouter(prefix="/api/maps", tags=["analysis"])

# --- Dependency Injection ---
def get_analysis_engine(request: Request) -> AnalysisEngine:
    return request.app.state.analysis_engine

@router.post("/analyze-place", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def analyze_place_endpoint(
    request: AnalyzePlaceRequest,
    engine: AnalysisEngine = Depends(get_analysis_engine)
):
    if request.place is None:
        return JSONResponse(
            status_code=400,
            content={"error": "Lieu manquant dans la requête", "details": "Le champ 'place' est requis"}
        )

    try:
        result = await engine.run_place(request.place)
        logs.log(logging.INFO, f"Place analysis served (tier {int(result.tier)})", extra={"place": request.place.id})
        return {"success": True, "analysis": result.analysis.model_dump(by_alias=True)}
    except Exception as e:
        error = UnknownError.wrap(e)
        logs.log(logging.ERROR, f"Error in analyze_place_endpoint: {error.message}")
        return JSONResponse(
            status_code=500,
            content={"error": "Erreur lors de l'analyse du lieu", "details": error.message}
        )

@router.post("/analyze-route", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def analyze_route_endpoint(
    request: AnalyzeRouteRequest,
    engine: AnalysisEngine = Depends(get_analysis_engine)
):
    if request.route is None:
        return JSONResponse(
            status_code=400,
            content={"error": "Itinéraire manquant dans la requête", "details": "Le champ 'route' est requis"}
        )

    try:
        result = await engine.run_route(request.route)
        logs.log(logging.INFO, f"Route analysis served (tier {int(result.tier)})", extra={"route": request.route.id})
        return {"success": True, "analysis": result.analysis.model_dump()}
    except Exception as e:
        error = UnknownError.wrap(e)
        logs.log(logging.ERROR, f"Error in analyze_route_endpoint: {error.message}")
        return JSONResponse(
            status_code=500,
            content={"error": "Erreur lors de l'analyse de l'itinéraire", "details": error.message}
        )
