import asyncio
import itertools
import logging
import math
import time
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from maps_assistant.core.config import Settings, settings as default_settings
from maps_assistant.core.exceptions import (
    InvalidInputError,
    MapsAssistantError,
    ProviderError,
    SessionActiveError,
    UnknownError,
)
from maps_assistant.core.logger import logs
from maps_assistant.models.geo_model import LatLng, Place, Review, Route, RouteStep
from maps_assistant.services.map_session import (
    STATIC_MAP_URL,
    MapContainer,
    MapSession,
    render_diagnostic,
)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GEOLOCATION_URL = "https://www.googleapis.com/geolocation/v1/geolocate"

SEARCH_RADIUS_METERS = 5000
PHOTO_MAX_WIDTH = 400
DETAIL_FIELDS = [
    "place_id", "name", "formatted_address", "geometry",
    "rating", "price_level", "types", "photos",
    "opening_hours", "formatted_phone_number", "website", "reviews",
]

UNNAMED_PLACE = "Lieu sans nom"
NO_ADDRESS = "Adresse non disponible"
UNKNOWN_DISTANCE = "Distance inconnue"
UNKNOWN_DURATION = "Durée inconnue"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_coordinates(center: Any) -> LatLng:
    """
    Checks that `center` holds numeric, non-NaN, in-range lat/lng.
    Accepts a LatLng, a {"lat", "lng"} mapping or a (lat, lng) pair.
    """
    if isinstance(center, LatLng):
        return center
    if isinstance(center, Mapping):
        lat, lng = center.get("lat"), center.get("lng")
    elif isinstance(center, (tuple, list)) and len(center) == 2:
        lat, lng = center
    else:
        raise InvalidInputError("Coordonnées invalides", details=repr(center))

    if not _is_number(lat) or not _is_number(lng):
        raise InvalidInputError("Coordonnées invalides", details=f"lat={lat!r}, lng={lng!r}")
    if math.isnan(lat) or math.isnan(lng):
        raise InvalidInputError("Coordonnées non numériques", details=f"lat={lat}, lng={lng}")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise InvalidInputError("Coordonnées hors limites", details=f"lat={lat}, lng={lng}")
    return LatLng(lat=lat, lng=lng)


def _latlng(raw: Mapping | None) -> LatLng:
    raw = raw or {}
    return LatLng(lat=raw.get("lat") or 0, lng=raw.get("lng") or 0)


def _invalid_response(error: ValidationError, what: str) -> ProviderError:
    logs.log(logging.ERROR, f"Google Maps returned an unusable {what}: {error.error_count()} invalid field(s)")
    return ProviderError(
        f"Réponse Google Maps invalide ({what})",
        status="INVALID_RESPONSE",
        details=str(error),
    )


class GeoQueryClient:
    """
    Adapter around the Google Maps Platform web services.

    Owns its HTTP client and at most one live MapSession. Every failure is
    raised to the caller; only location acquisition falls back silently.
    """

    def __init__(
        self,
        api_key: str | None = None,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or default_settings
        self.api_key = api_key if api_key is not None else self.config.GOOGLE_MAPS_API_KEY
        self._http = httpx.AsyncClient(transport=transport, timeout=self.config.GEO_TIMEOUT)
        self._session: MapSession | None = None
        self._route_seq = itertools.count(1)
        self._last_location: LatLng | None = None
        self._last_location_at = 0.0

    @property
    def default_location(self) -> LatLng:
        return LatLng(lat=self.config.DEFAULT_LAT, lng=self.config.DEFAULT_LNG)

    @property
    def session(self) -> MapSession | None:
        """The live session, or None when nothing is displayed."""
        if self._session is not None and self._session.is_live:
            return self._session
        return None

    async def _call_provider(
        self,
        method: str,
        url: str,
        params: dict | None = None,
        json: dict | None = None,
        timeout: float | None = None,
    ) -> dict:
        """Performs one request and returns the decoded JSON body."""
        query = dict(params or {})
        query["key"] = self.api_key
        try:
            response = await self._http.request(
                method,
                url,
                params=query,
                json=json,
                timeout=timeout or self.config.GEO_TIMEOUT,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logs.log(logging.ERROR, f"Google Maps HTTP {e.response.status_code} for {url}")
            raise ProviderError(
                f"Google Maps a refusé la requête (HTTP {e.response.status_code})",
                status=str(e.response.status_code),
                details=e.response.text[:300],
            ) from e
        except httpx.HTTPError as e:
            logs.log(logging.ERROR, f"Google Maps unreachable: {str(e)}")
            raise ProviderError("Google Maps injoignable", status="REQUEST_FAILED", details=str(e)) from e
        except ValueError as e:
            logs.log(logging.ERROR, f"Google Maps returned a non-JSON body for {url}")
            raise ProviderError("Réponse Google Maps illisible", status="INVALID_RESPONSE", details=str(e)) from e

    # ===== Location =====

    async def acquire_location(self) -> LatLng:
        """
        Current position from the geolocation service.
        Never raises: timeouts, provider errors and out-of-range coordinates
        all resolve to the default location.
        """
        now = time.monotonic()
        if self._last_location is not None and now - self._last_location_at < self.config.LOCATION_MAX_AGE:
            return self._last_location

        try:
            location = await asyncio.wait_for(self._geolocate(), timeout=self.config.LOCATION_TIMEOUT)
        except asyncio.TimeoutError:
            logs.log(logging.WARNING, "Geolocation timed out, using default location")
            return self.default_location
        except Exception as e:
            logs.log(logging.WARNING, f"Geolocation failed ({str(e)}), using default location")
            return self.default_location

        logs.log(logging.INFO, f"Position obtained: {location.lat}, {location.lng}")
        self._last_location = location
        self._last_location_at = time.monotonic()
        return location

    async def _geolocate(self) -> LatLng:
        payload = await self._call_provider(
            "POST",
            GEOLOCATION_URL,
            json={"considerIp": True},
            timeout=self.config.LOCATION_TIMEOUT,
        )
        return validate_coordinates(payload.get("location") or {})

    async def reverse_geocode(self, location: Any) -> str | None:
        """Formatted address for a coordinate, None when the provider knows none."""
        point = validate_coordinates(location)
        payload = await self._call_provider("GET", GEOCODE_URL, params={"latlng": f"{point.lat},{point.lng}"})
        status = payload.get("status")
        if status == "ZERO_RESULTS":
            return None
        if status != "OK":
            raise ProviderError(f"Erreur de géocodage: {status}", status=status, details=payload.get("error_message"))
        results = payload.get("results") or []
        return results[0].get("formatted_address") if results else None

    # ===== Map session =====

    async def initialize_session(self, container: MapContainer | None, center: Any) -> MapSession:
        """
        Opens the map session in `container`.
        On any failure the diagnostic HTML is written into the container (when
        there is one) and attached to the raised error.
        """
        if self.session is not None:
            raise SessionActiveError("Une carte est déjà active pour ce client")

        try:
            if container is None:
                raise InvalidInputError("Conteneur manquant pour la carte")
            location = validate_coordinates(center)
            logs.log(logging.INFO, f"Loading Google Maps centered on {location.lat}, {location.lng}")
            await self._load_provider(location)
        except Exception as e:
            error = e if isinstance(e, MapsAssistantError) else UnknownError.wrap(e)
            logs.log(logging.ERROR, f"Google Maps initialization failed: {error.message}")
            error.diagnostic_html = render_diagnostic(error.message)
            if container is not None:
                container.html = error.diagnostic_html
            if error is e:
                raise
            raise error from e

        self._session = MapSession(container, location, self.api_key)
        logs.log(logging.INFO, "Google Maps loaded")
        return self._session

    async def _load_provider(self, center: LatLng):
        """Requests a 1x1 static map to confirm the key and the map API are usable."""
        try:
            response = await self._http.get(
                STATIC_MAP_URL,
                params={
                    "center": f"{center.lat},{center.lng}",
                    "zoom": 1,
                    "size": "1x1",
                    "key": self.api_key,
                },
            )
        except httpx.HTTPError as e:
            raise ProviderError("Google Maps injoignable", status="REQUEST_FAILED", details=str(e)) from e
        if response.status_code != 200:
            raise ProviderError(
                f"Chargement de Google Maps refusé (HTTP {response.status_code})",
                status=str(response.status_code),
                details=response.text[:300],
            )

    def close_session(self):
        if self._session is not None:
            self._session.close()
            self._session = None

    def pan_to(self, location: Any):
        session = self.session
        if session is None:
            return
        session.pan_to(validate_coordinates(location))

    def clear_route(self):
        session = self.session
        if session is not None:
            session.clear_route()

    async def aclose(self):
        self.close_session()
        await self._http.aclose()

    # ===== Places =====

    async def search_places(self, query: str, near: Any = None) -> list[Place]:
        """
        Text search, normalized into Places in provider order.
        A blank query returns [] without contacting the provider.
        """
        if not query or not query.strip():
            logs.log(logging.DEBUG, "Empty search query, skipping provider call")
            return []

        params = {"query": query.strip()}
        if near is not None:
            point = validate_coordinates(near)
            params["location"] = f"{point.lat},{point.lng}"
            params["radius"] = SEARCH_RADIUS_METERS

        logs.log(logging.INFO, f"Searching places for '{query.strip()}'")
        payload = await self._call_provider("GET", TEXT_SEARCH_URL, params=params)
        status = payload.get("status")
        if status != "OK":
            logs.log(logging.WARNING, f"Place search failed with status {status}")
            raise ProviderError(f"Erreur de recherche: {status}", status=status, details=payload.get("error_message"))

        places = [
            self._normalize_place(raw, fallback_id=f"place-{index}")
            for index, raw in enumerate(payload.get("results") or [])
        ]

        session = self.session
        if session is not None:
            for place in places:
                session.add_marker(place.location, place.name)

        logs.log(logging.INFO, f"Found {len(places)} places for '{query.strip()}'")
        return places

    async def get_place_details(self, place_id: str) -> Place | None:
        if not place_id or not place_id.strip():
            raise InvalidInputError("Identifiant de lieu manquant")

        payload = await self._call_provider(
            "GET",
            DETAILS_URL,
            params={"place_id": place_id, "fields": ",".join(DETAIL_FIELDS)},
        )
        status = payload.get("status")
        result = payload.get("result")
        if status != "OK" or not result:
            logs.log(logging.INFO, f"Place '{place_id}' not resolved (status {status})")
            return None

        return self._normalize_place(result, fallback_id=place_id, with_details=True)

    def _photo_url(self, reference: str) -> str:
        return str(httpx.URL(PHOTO_URL, params={
            "maxwidth": PHOTO_MAX_WIDTH,
            "photo_reference": reference,
            "key": self.api_key,
        }))

    def _normalize_place(self, raw: dict, fallback_id: str, with_details: bool = False) -> Place:
        try:
            data = {
                "id": raw.get("place_id") or fallback_id,
                "name": raw.get("name") or UNNAMED_PLACE,
                "address": raw.get("formatted_address") or NO_ADDRESS,
                "location": _latlng((raw.get("geometry") or {}).get("location")),
                "rating": raw.get("rating"),
                "price_level": raw.get("price_level"),
                "types": raw.get("types") or [],
                "photos": [
                    self._photo_url(photo["photo_reference"])
                    for photo in raw.get("photos") or []
                    if photo.get("photo_reference")
                ],
            }
            if with_details:
                data["opening_hours"] = (raw.get("opening_hours") or {}).get("weekday_text") or []
                data["phone_number"] = raw.get("formatted_phone_number")
                data["website"] = raw.get("website")
                data["reviews"] = [
                    Review(
                        author=review.get("author_name") or "",
                        rating=review.get("rating") or 0,
                        text=review.get("text") or "",
                        time=review.get("time") or 0,
                    )
                    for review in raw.get("reviews") or []
                ]
            return Place(**data)
        except ValidationError as e:
            raise _invalid_response(e, "lieu") from e

    # ===== Routes =====

    async def calculate_route(self, origin: str, destination: str) -> Route:
        """
        Driving directions. Only the first route is kept and it replaces
        the route shown on the live session.
        """
        if not origin or not origin.strip() or not destination or not destination.strip():
            raise InvalidInputError("Point de départ et destination requis")

        payload = await self._call_provider(
            "GET",
            DIRECTIONS_URL,
            params={
                "origin": origin,
                "destination": destination,
                "mode": "driving",
                "units": "metric",
            },
        )
        status = payload.get("status")
        routes = payload.get("routes") or []
        legs = routes[0].get("legs") if routes else None
        if status != "OK" or not legs or not legs[0].get("steps"):
            logs.log(logging.WARNING, f"Directions failed with status {status}")
            raise ProviderError(
                f"Erreur de calcul d'itinéraire: {status}",
                status=status,
                details=payload.get("error_message"),
            )

        first = routes[0]
        leg = legs[0]
        try:
            route = Route(
                id=f"route-{int(time.time() * 1000)}-{next(self._route_seq)}",
                origin=leg.get("start_address") or origin,
                destination=leg.get("end_address") or destination,
                distance=(leg.get("distance") or {}).get("text") or UNKNOWN_DISTANCE,
                duration=(leg.get("duration") or {}).get("text") or UNKNOWN_DURATION,
                steps=[
                    RouteStep(
                        instruction=step.get("html_instructions") or "",
                        distance=(step.get("distance") or {}).get("text") or "",
                        duration=(step.get("duration") or {}).get("text") or "",
                        start_location=_latlng(step.get("start_location")),
                        end_location=_latlng(step.get("end_location")),
                    )
                    for step in leg.get("steps") or []
                ],
                overview_polyline=(first.get("overview_polyline") or {}).get("points") or "",
            )
        except ValidationError as e:
            raise _invalid_response(e, "itinéraire") from e

        session = self.session
        if session is not None:
            session.set_route(route)

        logs.log(logging.INFO, f"Route computed: {route.origin} → {route.destination} ({route.distance})")
        return route
