"""
Tests for GeoQueryClient: validation, normalization and the map session.
"""
import asyncio
import math

import httpx
import pytest

from maps_assistant.core.exceptions import InvalidInputError, ProviderError, SessionActiveError
from maps_assistant.models.geo_model import LatLng, Place
from maps_assistant.services.Geo_service import GeoQueryClient, validate_coordinates
from maps_assistant.services.map_session import MapContainer

PARIS = {"lat": 48.8566, "lng": 2.3522}

SEARCH_PAYLOAD = {
    "status": "OK",
    "results": [
        {
            "place_id": "p1",
            "name": "Café de Flore",
            "formatted_address": "172 Bd Saint-Germain, Paris",
            "geometry": {"location": {"lat": 48.854, "lng": 2.3325}},
            "rating": 4.1,
            "price_level": 3,
            "types": ["cafe", "restaurant"],
            "photos": [{"photo_reference": "ref-1"}],
        },
        {"types": []},
    ],
}

DETAILS_PAYLOAD = {
    "status": "OK",
    "result": {
        "place_id": "p1",
        "name": "Café de Flore",
        "formatted_address": "172 Bd Saint-Germain, Paris",
        "geometry": {"location": {"lat": 48.854, "lng": 2.3325}},
        "rating": 4.1,
        "types": ["cafe"],
        "opening_hours": {"weekday_text": ["lundi: 07:30–01:30", "mardi: 07:30–01:30"]},
        "formatted_phone_number": "01 45 48 55 26",
        "website": "https://cafedeflore.fr",
        "reviews": [{"author_name": "Anne", "rating": 5, "text": "Mythique", "time": 1700000000}],
    },
}


def directions_payload(*polylines, status="OK"):
    return {
        "status": status,
        "routes": [
            {
                "overview_polyline": {"points": polyline},
                "legs": [{
                    "start_address": "Paris, France",
                    "end_address": "Lyon, France",
                    "distance": {"text": "465 km"},
                    "duration": {"text": "4 heures 32 min"},
                    "steps": [{
                        "html_instructions": "Prendre <b>A6</b>",
                        "distance": {"text": "460 km"},
                        "duration": {"text": "4 h"},
                        "start_location": {"lat": 48.85, "lng": 2.35},
                        "end_location": {"lat": 45.76, "lng": 4.83},
                    }],
                }],
            }
            for polyline in polylines
        ],
    }


async def open_session(geo_client, google, center=PARIS):
    google.on("staticmap", b"PNG", 200)
    container = MapContainer()
    session = await geo_client.initialize_session(container, center)
    return container, session


class TestValidateCoordinates:

    def test_accepts_mapping_pair_and_latlng(self):
        assert validate_coordinates({"lat": 1, "lng": 2}) == LatLng(lat=1, lng=2)
        assert validate_coordinates((1.5, -2.5)) == LatLng(lat=1.5, lng=-2.5)
        point = LatLng(lat=3, lng=4)
        assert validate_coordinates(point) is point

    @pytest.mark.parametrize("center", [
        {"lat": 90.0001, "lng": 0},
        {"lat": -91, "lng": 0},
        {"lat": 0, "lng": 180.5},
        {"lat": 0, "lng": -181},
        {"lat": math.nan, "lng": 0},
        {"lat": "48.8", "lng": 2.3},
        {"lat": True, "lng": 2.3},
        {"lng": 2.3},
        None,
    ])
    def test_rejects_invalid(self, center):
        with pytest.raises(InvalidInputError):
            validate_coordinates(center)


class TestSessionLifecycle:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("center", [
        {"lat": 95, "lng": 2},
        {"lat": -90.5, "lng": 2},
        {"lat": 48, "lng": 200},
        {"lat": 48, "lng": -180.1},
        {"lat": math.nan, "lng": 2},
        {"lat": 48, "lng": math.inf},
    ])
    async def test_invalid_center_never_contacts_provider(self, geo_client, google, center):
        container = MapContainer()
        with pytest.raises(InvalidInputError) as info:
            await geo_client.initialize_session(container, center)

        assert google.requests == []
        assert "Erreur Google Maps" in container.html
        assert info.value.diagnostic_html == container.html
        assert geo_client.session is None

    @pytest.mark.asyncio
    async def test_missing_container(self, geo_client, google):
        with pytest.raises(InvalidInputError) as info:
            await geo_client.initialize_session(None, PARIS)

        assert google.requests == []
        assert "Conteneur manquant" in info.value.diagnostic_html

    @pytest.mark.asyncio
    async def test_provider_failure_renders_remediation(self, geo_client, google):
        google.on("staticmap", "The Google Maps Platform server rejected your request.", 403)
        container = MapContainer()

        with pytest.raises(ProviderError) as info:
            await geo_client.initialize_session(container, PARIS)

        assert info.value.status == "403"
        assert "Activez les APIs dans Google Cloud Console" in container.html
        assert "http://localhost:3000/*" in container.html
        assert "Vérifiez la facturation" in container.html
        assert geo_client.session is None

    @pytest.mark.asyncio
    async def test_unreachable_provider(self, geo_client, google):
        google.on("staticmap", exc=httpx.ConnectError("boom"))
        container = MapContainer()

        with pytest.raises(ProviderError):
            await geo_client.initialize_session(container, PARIS)
        assert "Impossible de charger Google Maps." in container.html

    @pytest.mark.asyncio
    async def test_initialize_renders_map(self, geo_client, google):
        container, session = await open_session(geo_client, google)

        assert geo_client.session is session
        assert session.zoom == 13
        assert "staticmap" in container.html
        assert "48.8566%2C2.3522" in container.html or "48.8566,2.3522" in container.html

    @pytest.mark.asyncio
    async def test_second_session_is_an_error(self, geo_client, google):
        await open_session(geo_client, google)

        with pytest.raises(SessionActiveError):
            await geo_client.initialize_session(MapContainer(), PARIS)

        geo_client.close_session()
        assert geo_client.session is None
        _, session = await open_session(geo_client, google)
        assert session.is_live

    @pytest.mark.asyncio
    async def test_pan_to_sets_close_zoom(self, geo_client, google):
        geo_client.pan_to(PARIS)  # no session yet: nothing happens

        _, session = await open_session(geo_client, google)
        geo_client.pan_to({"lat": 45.76, "lng": 4.83})

        assert session.center == LatLng(lat=45.76, lng=4.83)
        assert session.zoom == 15

    @pytest.mark.asyncio
    async def test_clear_route_is_idempotent(self, geo_client, google):
        geo_client.clear_route()

        _, session = await open_session(geo_client, google)
        google.on("directions", directions_payload("abc123"))
        await geo_client.calculate_route("Paris", "Lyon")

        geo_client.clear_route()
        geo_client.clear_route()
        assert session.route is None
        assert session.markers == []


class TestLocation:

    @pytest.mark.asyncio
    async def test_acquired_location_is_reused(self, geo_client, google):
        google.on("geolocate", {"location": {"lat": 45.76, "lng": 4.83}, "accuracy": 50})

        first = await geo_client.acquire_location()
        second = await geo_client.acquire_location()

        assert first == LatLng(lat=45.76, lng=4.83)
        assert second == first
        assert len(google.calls_to("geolocate")) == 1

    @pytest.mark.asyncio
    async def test_provider_error_falls_back_to_default(self, geo_client, google):
        google.on("geolocate", {"error": {"code": 404}}, 404)
        assert await geo_client.acquire_location() == LatLng(lat=48.8566, lng=2.3522)

    @pytest.mark.asyncio
    async def test_out_of_bounds_falls_back_to_default(self, geo_client, google):
        google.on("geolocate", {"location": {"lat": 123.0, "lng": 2.0}})
        assert await geo_client.acquire_location() == LatLng(lat=48.8566, lng=2.3522)

    @pytest.mark.asyncio
    async def test_connection_timeout_falls_back_to_default(self, geo_client, google):
        google.on("geolocate", exc=httpx.ConnectTimeout("slow"))
        assert await geo_client.acquire_location() == geo_client.default_location

    @pytest.mark.asyncio
    async def test_bounded_wait(self, test_settings):
        async def hanging(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={"location": {"lat": 1, "lng": 1}})

        settings = test_settings.model_copy(update={"LOCATION_TIMEOUT": 0.05})
        client = GeoQueryClient(config=settings, transport=httpx.MockTransport(hanging))

        location = await asyncio.wait_for(client.acquire_location(), timeout=2)
        assert location == client.default_location
        await client.aclose()

    @pytest.mark.asyncio
    async def test_reverse_geocode(self, geo_client, google):
        google.on("geocode", {"status": "OK", "results": [{"formatted_address": "Place du Châtelet, Paris"}]})
        assert await geo_client.reverse_geocode(PARIS) == "Place du Châtelet, Paris"

        google.on("geocode", {"status": "ZERO_RESULTS", "results": []})
        assert await geo_client.reverse_geocode(PARIS) is None


class TestSearchPlaces:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    async def test_blank_query_never_calls_provider(self, geo_client, google, query):
        assert await geo_client.search_places(query) == []
        assert google.requests == []

    @pytest.mark.asyncio
    async def test_results_are_normalized_in_order(self, geo_client, google):
        google.on("textsearch", SEARCH_PAYLOAD)

        places = await geo_client.search_places("café", near=PARIS)

        assert [p.id for p in places] == ["p1", "place-1"]
        first, second = places
        assert first.name == "Café de Flore"
        assert first.price_level == 3
        assert first.photos[0].startswith("https://maps.googleapis.com/maps/api/place/photo")
        assert "photo_reference=ref-1" in first.photos[0]
        assert second.name == "Lieu sans nom"
        assert second.address == "Adresse non disponible"
        assert second.location == LatLng(lat=0, lng=0)
        assert second.rating is None

        request = google.calls_to("textsearch")[0]
        assert request.url.params["location"] == "48.8566,2.3522"
        assert request.url.params["radius"] == "5000"
        assert request.url.params["key"] == "test-key"

    @pytest.mark.asyncio
    async def test_results_are_marked_on_live_session(self, geo_client, google):
        container, session = await open_session(geo_client, google)
        google.on("textsearch", SEARCH_PAYLOAD)

        await geo_client.search_places("café")

        assert [m.title for m in session.markers] == ["Café de Flore", "Lieu sans nom"]
        assert "Café de Flore" in container.html

    @pytest.mark.asyncio
    async def test_non_ok_status_raises(self, geo_client, google):
        google.on("textsearch", {"status": "REQUEST_DENIED", "error_message": "API key invalid"})

        with pytest.raises(ProviderError) as info:
            await geo_client.search_places("musée")

        assert info.value.status == "REQUEST_DENIED"
        assert "REQUEST_DENIED" in info.value.message

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self, geo_client, google):
        google.on("textsearch", exc=httpx.ConnectError("down"))

        with pytest.raises(ProviderError) as info:
            await geo_client.search_places("musée")
        assert info.value.status == "REQUEST_FAILED"

    @pytest.mark.asyncio
    async def test_round_trip_preserves_identity(self, geo_client, google):
        google.on("textsearch", SEARCH_PAYLOAD)
        place = (await geo_client.search_places("café"))[0]

        payload = place.model_dump(by_alias=True)
        restored = Place.model_validate(payload)

        assert "priceLevel" in payload
        assert (restored.id, restored.name, restored.address, restored.location) == (
            place.id, place.name, place.address, place.location
        )


    @pytest.mark.asyncio
    async def test_out_of_range_coordinates_are_a_provider_error(self, geo_client, google):
        google.on("textsearch", {"status": "OK", "results": [
            {"place_id": "p1", "name": "Nulle part", "geometry": {"location": {"lat": 95, "lng": 2}}},
        ]})

        with pytest.raises(ProviderError) as info:
            await geo_client.search_places("cafe")
        assert info.value.status == "INVALID_RESPONSE"


class TestPlaceDetails:

    @pytest.mark.asyncio
    async def test_details_populate_extra_fields(self, geo_client, google):
        google.on("details", DETAILS_PAYLOAD)

        place = await geo_client.get_place_details("p1")

        assert place.opening_hours == ["lundi: 07:30–01:30", "mardi: 07:30–01:30"]
        assert place.phone_number == "01 45 48 55 26"
        assert place.website == "https://cafedeflore.fr"
        assert place.reviews[0].author == "Anne"
        assert place.reviews[0].rating == 5
        request = google.calls_to("details")[0]
        assert "opening_hours" in request.url.params["fields"]

    @pytest.mark.asyncio
    async def test_invalid_rating_is_a_provider_error(self, geo_client, google):
        google.on("details", {"status": "OK", "result": {**DETAILS_PAYLOAD["result"], "rating": 9}})

        with pytest.raises(ProviderError) as info:
            await geo_client.get_place_details("p1")
        assert info.value.status == "INVALID_RESPONSE"

    @pytest.mark.asyncio
    async def test_unresolved_id_is_absent(self, geo_client, google):
        google.on("details", {"status": "NOT_FOUND"})
        assert await geo_client.get_place_details("unknown") is None


class TestCalculateRoute:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("origin, destination", [("", "Lyon"), ("Paris", "  "), ("", "")])
    async def test_empty_endpoints_are_rejected(self, geo_client, google, origin, destination):
        with pytest.raises(InvalidInputError):
            await geo_client.calculate_route(origin, destination)
        assert google.requests == []

    @pytest.mark.asyncio
    async def test_first_alternative_only(self, geo_client, google):
        google.on("directions", directions_payload("first", "second"))

        route = await geo_client.calculate_route("paris", "lyon")

        assert route.overview_polyline == "first"
        assert route.origin == "Paris, France"
        assert route.destination == "Lyon, France"
        assert route.distance == "465 km"
        assert route.steps[0].instruction == "Prendre <b>A6</b>"
        assert route.id.startswith("route-")

        request = google.calls_to("directions")[0]
        assert request.url.params["mode"] == "driving"
        assert request.url.params["units"] == "metric"

    @pytest.mark.asyncio
    async def test_route_replaces_previous_one(self, geo_client, google):
        _, session = await open_session(geo_client, google)

        google.on("directions", directions_payload("abc123"))
        first = await geo_client.calculate_route("Paris", "Lyon")
        google.on("directions", directions_payload("xyz789"))
        second = await geo_client.calculate_route("Paris", "Lyon")

        assert first.id != second.id
        assert session.route == second
        url = session.static_map_url()
        assert "xyz789" in url
        assert "abc123" not in url

    @pytest.mark.asyncio
    async def test_routing_failure_carries_status(self, geo_client, google):
        google.on("directions", {"status": "ZERO_RESULTS", "routes": []})

        with pytest.raises(ProviderError) as info:
            await geo_client.calculate_route("Paris", "New York")

        assert info.value.status == "ZERO_RESULTS"
        assert "Erreur de calcul d'itinéraire" in info.value.message

    @pytest.mark.asyncio
    async def test_leg_without_steps_is_a_provider_error(self, geo_client, google):
        payload = directions_payload("abc123")
        payload["routes"][0]["legs"][0]["steps"] = []
        google.on("directions", payload)

        with pytest.raises(ProviderError) as info:
            await geo_client.calculate_route("Paris", "Lyon")
        assert info.value.status == "OK"

    @pytest.mark.asyncio
    async def test_out_of_range_step_is_a_provider_error(self, geo_client, google):
        payload = directions_payload("abc123")
        payload["routes"][0]["legs"][0]["steps"][0]["end_location"] = {"lat": 45.76, "lng": 190}
        google.on("directions", payload)

        with pytest.raises(ProviderError) as info:
            await geo_client.calculate_route("Paris", "Lyon")
        assert info.value.status == "INVALID_RESPONSE"
