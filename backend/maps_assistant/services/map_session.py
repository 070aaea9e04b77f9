"""
Live map surface owned by GeoQueryClient.

A MapSession keeps the map state (center, zoom, markers, the one active
route) and renders it into its MapContainer as an HTML fragment backed by the
Google Static Maps renderer. Every mutation re-renders the container.
"""
import html
import logging
from dataclasses import dataclass

import httpx

from maps_assistant.core.logger import logs
from maps_assistant.models.geo_model import LatLng, Route

STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"

INITIAL_ZOOM = 13
CLOSE_ZOOM = 15
MAP_SIZE = (640, 480)


@dataclass
class MapContainer:
    """Render target for a map session, the server-side stand-in for a DOM node."""
    element_id: str = "map"
    html: str = ""


@dataclass(frozen=True)
class Marker:
    position: LatLng
    title: str


def render_diagnostic(message: str) -> str:
    """HTML shown in the container when the map cannot be initialized."""
    return f"""
<div style="padding: 20px; text-align: center; background: #f8f9fa; border-radius: 8px;">
  <h3 style="color: #dc3545;">❌ Erreur Google Maps</h3>
  <p>Impossible de charger Google Maps.</p>
  <p style="font-size: 12px; color: #666;">{html.escape(message or 'Erreur inconnue')}</p>
  <div style="margin: 15px 0; padding: 15px; background: #fff; border-radius: 5px;">
    <h4>🔧 Solutions :</h4>
    <p>1. Activez les APIs dans Google Cloud Console</p>
    <p>2. Ajoutez http://localhost:3000/* aux restrictions</p>
    <p>3. Vérifiez la facturation</p>
  </div>
</div>
""".strip()


class MapSession:
    def __init__(self, container: MapContainer, center: LatLng, api_key: str, zoom: int = INITIAL_ZOOM):
        self.container = container
        self.center = center
        self.zoom = zoom
        self.api_key = api_key
        self.markers: list[Marker] = []
        self.route: Route | None = None
        self.closed = False
        # The provider fits the viewport to the route until the user pans
        self._fit_route = False
        self.render()

    @property
    def is_live(self) -> bool:
        return not self.closed

    def add_marker(self, position: LatLng, title: str):
        self.markers.append(Marker(position=position, title=title))
        self.render()

    def set_route(self, route: Route):
        """Show `route`, replacing whatever route was displayed before."""
        self.route = route
        self._fit_route = True
        self.render()

    def clear_route(self):
        self.route = None
        self.markers = []
        self._fit_route = False
        self.render()

    def pan_to(self, location: LatLng, zoom: int = CLOSE_ZOOM):
        self.center = location
        self.zoom = zoom
        self._fit_route = False
        self.render()

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.container.html = ""
        logs.log(logging.INFO, f"Map session closed for container '{self.container.element_id}'")

    def static_map_url(self) -> str:
        width, height = MAP_SIZE
        params = [("size", f"{width}x{height}"), ("maptype", "roadmap")]
        if not (self._fit_route and self.route):
            params.append(("center", f"{self.center.lat},{self.center.lng}"))
            params.append(("zoom", str(self.zoom)))
        if self.markers:
            points = "|".join(f"{m.position.lat},{m.position.lng}" for m in self.markers)
            params.append(("markers", f"color:red|{points}"))
        if self.route and self.route.overview_polyline:
            params.append(("path", f"color:0x1E88E5ff|weight:5|enc:{self.route.overview_polyline}"))
        params.append(("key", self.api_key))
        return str(httpx.URL(STATIC_MAP_URL, params=params))

    def render(self) -> str:
        if self.closed:
            return self.container.html
        width, height = MAP_SIZE
        titles = "".join(f"<li>{html.escape(m.title)}</li>" for m in self.markers)
        markers_list = f'<ul class="map-markers">{titles}</ul>' if titles else ""
        route_caption = ""
        if self.route:
            route_caption = (
                f'<p class="map-route">{html.escape(self.route.origin)} → '
                f'{html.escape(self.route.destination)} ({html.escape(self.route.distance)}, '
                f'{html.escape(self.route.duration)})</p>'
            )
        self.container.html = (
            f'<div id="{html.escape(self.container.element_id)}" class="map-session" data-zoom="{self.zoom}">'
            f'<img src="{html.escape(self.static_map_url())}" width="{width}" height="{height}" alt="Carte"/>'
            f'{route_caption}'
            f'{markers_list}'
            f'</div>'
        )
        return self.container.html
