"""Taxonomy API endpoint."""

from aiohttp import web

from titletypes.app_keys import taxonomy_key


def create_taxonomy_routes() -> list[web.RouteDef]:
    return [web.get("/api/taxonomy", get_taxonomy)]


async def get_taxonomy(request: web.Request) -> web.Response:
    taxonomy = request.app[taxonomy_key]
    return web.json_response(taxonomy.to_dict())
