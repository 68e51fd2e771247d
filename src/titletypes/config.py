"""Configuration management for titletypes.

Supports TOML configuration format with auto-discovery.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from titletypes.core.preview import DEFAULT_ENDPOINT
from titletypes.core.routing import is_passthrough
from titletypes.core.types import ExpansionPolicy, URLPath

CONFIG_FILENAME = "titletypes.toml"

_PAGE_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class TaxonomyConfig:
    """Taxonomy document configuration."""

    # None selects the document bundled with the package
    source: Path | None = None


@dataclass
class PreviewsConfig:
    """Link preview lookup configuration."""

    endpoint: str = DEFAULT_ENDPOINT


@dataclass
class PageConfig:
    """A taxonomy page."""

    name: str
    path: URLPath
    title: str
    description: str = ""
    default_expansion: ExpansionPolicy = ExpansionPolicy.COLLAPSED
    previews: bool = False
    credit: str = ""
    community_url: str = ""


def default_pages() -> list[PageConfig]:
    """Pages served when the configuration defines none."""
    return [
        PageConfig(
            name="topics",
            path=URLPath("/topics"),
            title="Topics",
            description="Expand a type to see its subtypes. "
            "Expand a subtype to see example links.",
        ),
        PageConfig(
            name="titles",
            path=URLPath("/titles"),
            title="YouTube Video Titles",
            description="Classification of YouTube video titles that showed prominence.",
            default_expansion=ExpansionPolicy.FIRST_TOPIC,
            previews=True,
            credit="Created by Daniil Orain.",
            community_url="https://github.com/ungarson/TypesOfYouTubeVideoTitles",
        ),
    ]


def default_hosts() -> dict[str, URLPath]:
    return {"topics": URLPath("/topics"), "titles": URLPath("/titles")}


@dataclass
class RoutingConfig:
    """Host routing configuration."""

    hosts: dict[str, URLPath] = field(default_factory=default_hosts)
    preserve_subpath: bool = False


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    taxonomy: TaxonomyConfig
    previews: PreviewsConfig
    routing: RoutingConfig
    pages: list[PageConfig]
    config_path: Path | None = None

    def get_page(self, name: str) -> PageConfig | None:
        """Get page configuration by name."""
        for page in self.pages:
            if page.name == name:
                return page
        return None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for titletypes.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Config:
        """Create config with all defaults."""
        return cls(
            server=ServerConfig(),
            taxonomy=TaxonomyConfig(),
            previews=PreviewsConfig(),
            routing=RoutingConfig(),
            pages=default_pages(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        config_dir = path.parent

        server = cls._parse_server(data.get("server"))
        taxonomy = cls._parse_taxonomy(data.get("taxonomy"), config_dir)
        previews = cls._parse_previews(data.get("previews"))
        pages = cls._parse_pages(data.get("pages"))
        routing = cls._parse_routing(data.get("routing"), pages)

        cls._validate_routes(routing, pages)

        return cls(
            server=server,
            taxonomy=taxonomy,
            previews=previews,
            routing=routing,
            pages=pages,
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section.

        Args:
            data: Raw server section data

        Returns:
            ServerConfig instance
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_taxonomy(cls, data: object, config_dir: Path) -> TaxonomyConfig:
        """Parse taxonomy configuration section.

        Args:
            data: Raw taxonomy section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            TaxonomyConfig instance
        """
        if data is None:
            return TaxonomyConfig()

        if not isinstance(data, dict):
            raise ValueError("taxonomy section must be a dictionary")

        source = data.get("source")
        if source is None:
            return TaxonomyConfig()
        if not isinstance(source, str):
            raise ValueError("taxonomy.source must be a string")

        return TaxonomyConfig(source=config_dir / source)

    @classmethod
    def _parse_previews(cls, data: object) -> PreviewsConfig:
        if data is None:
            return PreviewsConfig()

        if not isinstance(data, dict):
            raise ValueError("previews section must be a dictionary")

        endpoint = data.get("endpoint", DEFAULT_ENDPOINT)
        if not isinstance(endpoint, str) or not endpoint:
            raise ValueError("previews.endpoint must be a non-empty string")

        return PreviewsConfig(endpoint=endpoint)

    @classmethod
    def _parse_routing(cls, data: object, pages: list[PageConfig]) -> RoutingConfig:
        """Parse routing configuration section.

        Without a hosts table, the default host routes are kept for the
        configured pages they target.

        Args:
            data: Raw routing section data
            pages: Configured pages

        Returns:
            RoutingConfig instance
        """
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ValueError("routing section must be a dictionary")

        preserve_subpath = data.get("preserve_subpath", False)
        if not isinstance(preserve_subpath, bool):
            raise ValueError("routing.preserve_subpath must be a boolean")

        hosts_raw = data.get("hosts")
        if hosts_raw is None:
            page_paths = {page.path for page in pages}
            hosts = {
                subdomain: target
                for subdomain, target in default_hosts().items()
                if target in page_paths
            }
            return RoutingConfig(hosts=hosts, preserve_subpath=preserve_subpath)
        if not isinstance(hosts_raw, dict):
            raise ValueError("routing.hosts must be a dictionary")

        hosts: dict[str, URLPath] = {}
        for subdomain, target in hosts_raw.items():
            if not isinstance(target, str) or not target.startswith("/"):
                raise ValueError(f"routing.hosts.{subdomain} must be a path starting with '/'")
            hosts[subdomain.lower()] = URLPath(target)

        return RoutingConfig(hosts=hosts, preserve_subpath=preserve_subpath)

    @classmethod
    def _parse_pages(cls, data: object) -> list[PageConfig]:
        """Parse pages configuration section.

        A pages table replaces the default pages entirely.

        Args:
            data: Raw pages section data

        Returns:
            List of PageConfig instances
        """
        if data is None:
            return default_pages()

        if not isinstance(data, dict):
            raise ValueError("pages section must be a dictionary")

        pages: list[PageConfig] = []
        seen_paths: set[str] = set()
        for name, page_data in data.items():
            page = cls._parse_page(name, page_data)
            if page.path in seen_paths:
                raise ValueError(f"pages.{name}.path duplicates another page")
            seen_paths.add(page.path)
            pages.append(page)
        return pages

    @classmethod
    def _parse_page(cls, name: str, data: object) -> PageConfig:
        """Parse a single pages.<name> table.

        Args:
            name: Page name (used in the view session URL)
            data: Raw page table

        Returns:
            PageConfig instance
        """
        if not _PAGE_NAME_RE.match(name):
            raise ValueError(
                f"pages.{name}: name must contain only lowercase letters, digits, '-' and '_'",
            )

        if not isinstance(data, dict):
            raise ValueError(f"pages.{name} must be a dictionary")

        path = data.get("path", f"/{name}")
        if isinstance(path, str):
            path = path.rstrip("/")
        if not isinstance(path, str) or not path.startswith("/"):
            raise ValueError(f"pages.{name}.path must be a path starting with '/'")
        if is_passthrough(path) or is_passthrough(f"{path}/"):
            raise ValueError(f"pages.{name}.path must not be a reserved path")

        title = data.get("title", name.capitalize())
        if not isinstance(title, str):
            raise ValueError(f"pages.{name}.title must be a string")

        description = data.get("description", "")
        if not isinstance(description, str):
            raise ValueError(f"pages.{name}.description must be a string")

        expansion_raw = data.get("default_expansion", ExpansionPolicy.COLLAPSED.value)
        try:
            default_expansion = ExpansionPolicy(expansion_raw)
        except ValueError:
            choices = ", ".join(policy.value for policy in ExpansionPolicy)
            raise ValueError(
                f"pages.{name}.default_expansion must be one of: {choices}",
            ) from None

        previews = data.get("previews", False)
        if not isinstance(previews, bool):
            raise ValueError(f"pages.{name}.previews must be a boolean")

        credit = data.get("credit", "")
        if not isinstance(credit, str):
            raise ValueError(f"pages.{name}.credit must be a string")

        community_url = data.get("community_url", "")
        if not isinstance(community_url, str):
            raise ValueError(f"pages.{name}.community_url must be a string")

        return PageConfig(
            name=name,
            path=URLPath(path),
            title=title,
            description=description,
            default_expansion=default_expansion,
            previews=previews,
            credit=credit,
            community_url=community_url,
        )

    @classmethod
    def _validate_routes(cls, routing: RoutingConfig, pages: list[PageConfig]) -> None:
        """Check that every routing target is a configured page."""
        page_paths = {page.path for page in pages}
        for subdomain, target in routing.hosts.items():
            if target not in page_paths:
                raise ValueError(
                    f"routing.hosts.{subdomain} targets {target}, which is not a configured page",
                )

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        source: Path | None = None,
        preview_endpoint: str | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. This follows
        the immutable pattern - the original Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            source: Override taxonomy.source
            preview_endpoint: Override previews.endpoint

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        taxonomy = self.taxonomy
        if source is not None:
            taxonomy = replace(self.taxonomy, source=source)

        previews = self.previews
        if preview_endpoint is not None:
            previews = replace(self.previews, endpoint=preview_endpoint)

        return replace(self, server=server, taxonomy=taxonomy, previews=previews)
