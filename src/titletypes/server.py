"""aiohttp server for titletypes.

Application factory, host routing middleware and route registration.
"""

import logging
from collections.abc import Awaitable, Callable

from aiohttp import web

from titletypes.api.preview import create_preview_routes
from titletypes.api.taxonomy import create_taxonomy_routes
from titletypes.app_keys import (
    config_key,
    renderer_key,
    resolver_key,
    router_key,
    taxonomy_key,
)
from titletypes.assets import get_static_dir
from titletypes.config import Config, PageConfig
from titletypes.core.preview import PreviewResolver
from titletypes.core.renderer import PageRenderer
from titletypes.core.routing import HostRouter
from titletypes.core.taxonomy import Taxonomy, load_bundled_taxonomy, load_taxonomy
from titletypes.core.view import TaxonomyView
from titletypes.live.session import create_session_routes

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def host_routing_middleware(
    request: web.Request,
    handler: Handler,
) -> web.StreamResponse:
    """Dispatch requests on mapped subdomains to their target page.

    The request is cloned with the rewritten path (query string preserved)
    and resolved again against the application router.
    """
    router = request.app[router_key]
    path = router.resolve(request.host, request.path)
    if path == request.path:
        return await handler(request)

    # with_path() re-encodes "?" and "#" in the decoded path and clears the query
    rel_url = request.rel_url.with_path(path).with_query(request.rel_url.query)
    rewritten = request.clone(rel_url=rel_url)
    match_info = await request.app.router.resolve(rewritten)
    return await match_info.handler(rewritten)


def load_configured_taxonomy(config: Config) -> Taxonomy:
    """Load the taxonomy named by the configuration.

    Raises:
        FileNotFoundError: If the configured document does not exist
        TaxonomyError: If the document is malformed
    """
    if config.taxonomy.source is None:
        return load_bundled_taxonomy()
    return load_taxonomy(config.taxonomy.source)


def create_app(
    config: Config,
    *,
    taxonomy: Taxonomy | None = None,
    resolver: PreviewResolver | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        taxonomy: Taxonomy to serve (default: loaded from configuration)
        resolver: Preview resolver (default: one using the configured endpoint)

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[host_routing_middleware])

    if taxonomy is None:
        taxonomy = load_configured_taxonomy(config)
    if resolver is None:
        resolver = PreviewResolver(config.previews.endpoint)

    app[config_key] = config
    app[taxonomy_key] = taxonomy
    app[resolver_key] = resolver
    app[renderer_key] = PageRenderer()
    app[router_key] = HostRouter(
        config.routing.hosts,
        preserve_subpath=config.routing.preserve_subpath,
    )

    app.router.add_routes(create_taxonomy_routes())
    app.router.add_routes(create_preview_routes())
    app.router.add_routes(create_session_routes())
    app.router.add_static("/static", get_static_dir())

    app.router.add_get("/", _serve_index)
    for page in config.pages:
        handler = _page_handler(page)
        app.router.add_get(page.path, handler)
        app.router.add_get(f"{page.path}/{{tail:.*}}", handler)

    app.on_cleanup.append(_close_resolver)

    logger.debug(
        f"Serving {len(taxonomy)} topics on {len(config.pages)} pages",
    )
    return app


def _page_handler(page: PageConfig) -> Handler:
    """Create the handler rendering a page in its default state."""

    async def serve_page(request: web.Request) -> web.Response:
        view = TaxonomyView(request.app[taxonomy_key], policy=page.default_expansion)
        html = request.app[renderer_key].render_page(page, view)
        return web.Response(text=html, content_type="text/html")

    return serve_page


async def _serve_index(request: web.Request) -> web.Response:
    """Serve the index page linking to every taxonomy page."""
    html = request.app[renderer_key].render_index(request.app[config_key].pages)
    return web.Response(text=html, content_type="text/html")


async def _close_resolver(app: web.Application) -> None:
    """Close the preview resolver's HTTP client on application cleanup."""
    await app[resolver_key].aclose()


def run_server(config: Config, *, taxonomy: Taxonomy | None = None) -> None:
    """Run the server.

    Args:
        config: Application configuration
        taxonomy: Already loaded taxonomy (default: loaded from configuration)
    """
    app = create_app(config, taxonomy=taxonomy)
    web.run_app(app, host=config.server.host, port=config.server.port)
