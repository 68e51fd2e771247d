"""Preview API endpoint.

Performs a single preview lookup for the URL given in the query string.
"""

from aiohttp import web

from titletypes.app_keys import resolver_key


def create_preview_routes() -> list[web.RouteDef]:
    return [web.get("/api/preview", get_preview)]


async def get_preview(request: web.Request) -> web.Response:
    url = request.query.get("url", "").strip()
    if not url:
        return web.json_response({"error": "Missing url parameter"}, status=400)

    resolver = request.app[resolver_key]
    result = await resolver.resolve(url)
    return web.json_response({"url": url, **result.to_dict()})
