"""Tests for server module."""

from dataclasses import replace
from typing import Any

import pytest
from aiohttp import web
from titletypes.app_keys import (
    config_key,
    renderer_key,
    resolver_key,
    router_key,
    taxonomy_key,
)
from titletypes.config import Config, RoutingConfig, TaxonomyConfig
from titletypes.core.taxonomy import Taxonomy
from titletypes.core.types import URLPath
from titletypes.server import create_app, load_configured_taxonomy

from tests.fakes import make_resolver, oembed_response


@pytest.fixture
def app(test_config: Config) -> web.Application:
    return create_app(test_config, resolver=make_resolver(oembed_response))


class TestCreateApp:
    """Tests for create_app()."""

    def test__valid_config__returns_configured_app(self, test_config: Config) -> None:
        """Create app with valid configuration."""
        app = create_app(test_config, resolver=make_resolver(oembed_response))

        assert app[config_key] is test_config
        assert len(app[taxonomy_key]) == 3
        assert resolver_key in app
        assert renderer_key in app
        assert app[router_key].routes == {"topics": "/topics", "titles": "/titles"}

    def test__taxonomy_given__used_as_is(self, test_config: Config, taxonomy: Taxonomy) -> None:
        app = create_app(test_config, taxonomy=taxonomy, resolver=make_resolver(oembed_response))

        assert app[taxonomy_key] is taxonomy

    def test__default_resolver__uses_configured_endpoint(self, test_config: Config) -> None:
        app = create_app(test_config)

        assert app[resolver_key].endpoint == test_config.previews.endpoint


class TestLoadConfiguredTaxonomy:
    """Tests for load_configured_taxonomy()."""

    def test__no_source__bundled_document(self, test_config: Config) -> None:
        config = replace(test_config, taxonomy=TaxonomyConfig())

        taxonomy = load_configured_taxonomy(config)

        assert len(taxonomy) > 0

    def test__missing_source__raises_file_not_found_error(
        self,
        test_config: Config,
        tmp_path,
    ) -> None:
        config = replace(test_config, taxonomy=TaxonomyConfig(source=tmp_path / "none.json"))

        with pytest.raises(FileNotFoundError):
            load_configured_taxonomy(config)


class TestPages:
    """Tests for page routes."""

    @pytest.mark.asyncio
    async def test__root_path__serves_index(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/")

        assert response.status == 200
        assert "text/html" in response.headers["Content-Type"]
        text = await response.text()
        assert 'href="/topics"' in text
        assert 'href="/titles"' in text

    @pytest.mark.asyncio
    async def test__topics_page__collapsed(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/topics")

        assert response.status == 200
        text = await response.text()
        assert "<title>Topics</title>" in text
        assert 'aria-expanded="true"' not in text
        assert 'data-socket="/ws/topics"' in text

    @pytest.mark.asyncio
    async def test__titles_page__first_topic_expanded(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/titles")

        assert response.status == 200
        text = await response.text()
        assert "<title>YouTube Video Titles</title>" in text
        assert "<em>Why</em> questions" in text
        assert "Missing examples" not in text

    @pytest.mark.asyncio
    async def test__page_sub_path__serves_page(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/topics/some/path")

        assert response.status == 200
        assert "<title>Topics</title>" in await response.text()

    @pytest.mark.asyncio
    async def test__unknown_path__not_found(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/nope")

        assert response.status == 404

    @pytest.mark.asyncio
    async def test__stylesheet__served(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/static/style.css")

        assert response.status == 200
        assert "text/css" in response.headers["Content-Type"]


class TestHostRouting:
    """Tests for host routing through the middleware."""

    @pytest.mark.asyncio
    async def test__mapped_subdomain_root__serves_target_page(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/", headers={"Host": "topics.example.com"})

        assert response.status == 200
        assert "<title>Topics</title>" in await response.text()

    @pytest.mark.asyncio
    async def test__mapped_subdomain_any_path__serves_target_page(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/does/not/exist", headers={"Host": "titles.example.com:8080"})

        assert response.status == 200
        assert "<title>YouTube Video Titles</title>" in await response.text()

    @pytest.mark.asyncio
    async def test__unmapped_host__unchanged(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/", headers={"Host": "example.com"})

        assert response.status == 200
        assert "<h1>Taxonomies</h1>" in await response.text()

    @pytest.mark.asyncio
    async def test__api_on_mapped_subdomain__passed_through(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/taxonomy", headers={"Host": "topics.example.com"})

        assert response.status == 200
        data = await response.json()
        assert data["topics"][0]["label"] == "First"

    @pytest.mark.asyncio
    async def test__static_on_mapped_subdomain__passed_through(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/static/style.css", headers={"Host": "topics.example.com"})

        assert response.status == 200
        assert "text/css" in response.headers["Content-Type"]

    @pytest.mark.asyncio
    async def test__favicon_on_mapped_subdomain__not_rewritten(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/favicon.ico", headers={"Host": "topics.example.com"})

        assert response.status == 404

    @pytest.mark.asyncio
    async def test__rewritten_request__keeps_query_string(
        self,
        aiohttp_client: Any,
        test_config: Config,
    ) -> None:
        """The rewritten request reaches the target with its query string."""
        config = replace(
            test_config,
            routing=RoutingConfig(hosts={"echo": URLPath("/echo")}),
        )
        app = create_app(config, resolver=make_resolver(oembed_response))

        async def echo(request: web.Request) -> web.Response:
            return web.json_response({"path": request.path, "query": dict(request.query)})

        app.router.add_get("/echo", echo)

        client = await aiohttp_client(app)
        response = await client.get("/elsewhere?a=1", headers={"Host": "echo.example.com"})

        assert response.status == 200
        assert await response.json() == {"path": "/echo", "query": {"a": "1"}}

    @pytest.mark.asyncio
    async def test__preserve_subpath__keeps_path_under_target(
        self,
        aiohttp_client: Any,
        test_config: Config,
    ) -> None:
        config = replace(
            test_config,
            routing=RoutingConfig(
                hosts={"echo": URLPath("/echo")},
                preserve_subpath=True,
            ),
        )
        app = create_app(config, resolver=make_resolver(oembed_response))

        async def echo(request: web.Request) -> web.Response:
            return web.json_response({"path": request.path})

        app.router.add_get("/echo/{tail:.*}", echo)

        client = await aiohttp_client(app)
        response = await client.get("/a/b", headers={"Host": "echo.example.com"})

        assert await response.json() == {"path": "/echo/a/b"}

    @pytest.mark.asyncio
    async def test__preserve_subpath__encoded_delimiters_stay_in_path(
        self,
        aiohttp_client: Any,
        test_config: Config,
    ) -> None:
        """An encoded "?" or "#" in the sub-path does not start a query."""
        config = replace(
            test_config,
            routing=RoutingConfig(
                hosts={"echo": URLPath("/echo")},
                preserve_subpath=True,
            ),
        )
        app = create_app(config, resolver=make_resolver(oembed_response))

        async def echo(request: web.Request) -> web.Response:
            return web.json_response({"path": request.path, "query": dict(request.query)})

        app.router.add_get("/echo/{tail:.*}", echo)

        client = await aiohttp_client(app)
        response = await client.get("/a%3Fb%23c?x=1", headers={"Host": "echo.example.com"})

        assert await response.json() == {"path": "/echo/a?b#c", "query": {"x": "1"}}
