"""HTML rendering of taxonomy pages.

Renders TaxonomyView state through Jinja2 templates bundled with the package.
The taxonomy fragment is rendered on its own for live session updates.
"""

from collections.abc import Sequence
from urllib.parse import urlsplit

from jinja2 import Environment, PackageLoader, select_autoescape

from titletypes.config import PageConfig
from titletypes.core.emphasis import format_emphasis
from titletypes.core.view import TaxonomyView


def hostname(url: str) -> str:
    """Host name of a URL, or the URL itself when it has none."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return url
    return host or url


def create_environment() -> Environment:
    """Create the Jinja2 environment with the package templates."""
    env = Environment(
        loader=PackageLoader("titletypes", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["emphasis"] = format_emphasis
    env.filters["hostname"] = hostname
    return env


class PageRenderer:
    """Renders taxonomy pages and fragments."""

    def __init__(self, env: Environment | None = None) -> None:
        self._env = env or create_environment()

    def render_page(self, page: PageConfig, view: TaxonomyView) -> str:
        """Render a complete taxonomy page.

        Args:
            page: Page configuration
            view: View whose state is rendered

        Returns:
            HTML document
        """
        template = self._env.get_template("page.html")
        return template.render(
            page=page,
            topics=view.nodes(),
            socket_path=f"/ws/{page.name}",
        )

    def render_taxonomy(self, page: PageConfig, view: TaxonomyView) -> str:
        """Render only the taxonomy list of a page."""
        template = self._env.get_template("taxonomy.html")
        return template.render(page=page, topics=view.nodes())

    def render_index(self, pages: Sequence[PageConfig]) -> str:
        """Render the index page linking to every taxonomy page."""
        template = self._env.get_template("index.html")
        return template.render(pages=pages)
