from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from maps_assistant.models.base_model import ErrorResponse, RouteRequest, SearchRequest
from maps_assistant.services.Geo_service import GeoQueryClient

# InvalidInputError and ProviderError raised here are turned into
# 400 / 502 responses by the handlers registered in main.py
router = APIRouter(prefix="/api/maps", tags=["geo"])

# --- Dependency Injection ---
def get_geo_client(request: Request) -> GeoQueryClient:
    return request.app.state.geo_client

@router.get("/location")
async def location_endpoint(client: GeoQueryClient = Depends(get_geo_client)):
    location = await client.acquire_location()
    return {"success": True, "location": location.model_dump()}

@router.post("/search", responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}})
async def search_endpoint(request: SearchRequest, client: GeoQueryClient = Depends(get_geo_client)):
    if not request.query.strip():
        return JSONResponse(
            status_code=400,
            content={"error": "Recherche vide", "details": "Le champ 'query' est requis"}
        )
    places = await client.search_places(request.query, request.near)
    return {"success": True, "places": [place.model_dump(by_alias=True) for place in places]}

@router.get("/places/{place_id}", responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}})
async def place_details_endpoint(place_id: str, client: GeoQueryClient = Depends(get_geo_client)):
    place = await client.get_place_details(place_id)
    if place is None:
        return JSONResponse(
            status_code=404,
            content={"error": "Lieu introuvable", "details": place_id}
        )
    return {"success": True, "place": place.model_dump(by_alias=True)}

@router.post("/route", responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}})
async def route_endpoint(request: RouteRequest, client: GeoQueryClient = Depends(get_geo_client)):
    route = await client.calculate_route(request.origin, request.destination)
    return {"success": True, "route": route.model_dump()}
