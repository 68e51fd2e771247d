"""WebSocket-backed view sessions.

Each WebSocket connection is one page load: it owns a TaxonomyView for its
lifetime, applies toggle actions sent by the browser and pushes the
re-rendered taxonomy fragment back after every change.
"""

import asyncio
import json
import logging

from aiohttp import WSMsgType, web

from titletypes.app_keys import config_key, renderer_key, resolver_key, taxonomy_key
from titletypes.config import PageConfig
from titletypes.core.preview import PreviewResolver
from titletypes.core.renderer import PageRenderer
from titletypes.core.taxonomy import Taxonomy
from titletypes.core.view import TaxonomyView

logger = logging.getLogger(__name__)


class ViewSession:
    """One interactive page load bound to a WebSocket.

    Renders are coalesced: any number of changes between two sends produce a
    single render frame.
    """

    def __init__(
        self,
        page: PageConfig,
        taxonomy: Taxonomy,
        renderer: PageRenderer,
        *,
        resolver: PreviewResolver | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            page: Page being viewed
            taxonomy: Taxonomy to display
            renderer: Renderer for taxonomy fragments
            resolver: Preview resolver, used only when the page shows previews
        """
        self._page = page
        self._renderer = renderer
        self._changed = asyncio.Event()
        self._view = TaxonomyView(
            taxonomy,
            policy=page.default_expansion,
            resolver=resolver if page.previews else None,
            on_change=self._changed.set,
        )
        self._sender: asyncio.Task[None] | None = None

    @property
    def view(self) -> TaxonomyView:
        return self._view

    async def handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Serve the session over a WebSocket connection.

        Args:
            request: aiohttp request

        Returns:
            WebSocket response
        """
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        logger.debug(f"View session opened for page {self._page.name}")
        self._sender = asyncio.create_task(self._push_renders(ws))
        self._view.mount()
        self._changed.set()

        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    error = self.apply(msg.data)
                    if error is not None:
                        logger.warning(f"Rejected view session message: {error}")
                        await ws.send_json({"type": "error", "error": error})
                elif msg.type == WSMsgType.ERROR:
                    break
        finally:
            await self.close()
            logger.debug(f"View session closed for page {self._page.name}")

        return ws

    def apply(self, raw: str) -> str | None:
        """Apply a toggle action message.

        Args:
            raw: JSON message text

        Returns:
            Error description, or None if the action was applied
        """
        try:
            message = json.loads(raw)
        except ValueError:
            return "Message must be valid JSON"
        if not isinstance(message, dict):
            return "Message must be an object"

        action = message.get("action")
        if action not in ("toggle_topic", "toggle_subtype"):
            return f"Unknown action: {action}"

        topic = message.get("topic")
        if not _is_index(topic):
            return "topic must be a non-negative integer"

        try:
            if action == "toggle_topic":
                self._view.toggle_topic(topic)
            else:
                subtype = message.get("subtype")
                if not _is_index(subtype):
                    return "subtype must be a non-negative integer"
                self._view.toggle_subtype(topic, subtype)
        except IndexError as e:
            return str(e)
        return None

    async def close(self) -> None:
        """Close the view and stop pushing renders."""
        self._view.close()
        if self._sender is not None:
            self._sender.cancel()
            try:
                await self._sender
            except asyncio.CancelledError:
                pass
            self._sender = None

    async def _push_renders(self, ws: web.WebSocketResponse) -> None:
        """Send a render frame whenever the view has changed."""
        while True:
            await self._changed.wait()
            self._changed.clear()
            if ws.closed:
                return
            html = self._renderer.render_taxonomy(self._page, self._view)
            try:
                await ws.send_json({"type": "render", "html": html})
            except ConnectionResetError:
                return


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def create_session_routes() -> list[web.RouteDef]:
    return [web.get("/ws/{name}", handle_view_socket)]


async def handle_view_socket(request: web.Request) -> web.StreamResponse:
    name = request.match_info["name"]
    page = request.app[config_key].get_page(name)
    if page is None:
        return web.json_response({"error": "Page not found", "name": name}, status=404)

    session = ViewSession(
        page,
        request.app[taxonomy_key],
        request.app[renderer_key],
        resolver=request.app[resolver_key],
    )
    return await session.handle_websocket(request)
