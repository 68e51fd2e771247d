"""Host-based routing.

Maps requests on configured subdomains to a fixed page, regardless of the
requested path. Framework and static paths are never rewritten.
"""

from collections.abc import Mapping

from titletypes.core.types import URLPath

PASSTHROUGH_PREFIXES = ("/_next", "/static/", "/public/", "/api/", "/ws/")
PASSTHROUGH_PATHS = frozenset({"/favicon.ico"})


def subdomain_of(host: str) -> str | None:
    """Extract the subdomain from a Host header value.

    Args:
        host: Host header (e.g., "topics.example.com:8080")

    Returns:
        Lower-cased label before the first dot, or None if the host name has
        no dot
    """
    hostname = host.split(":", 1)[0].strip().lower()
    label, dot, _ = hostname.partition(".")
    if not dot or not label:
        return None
    return label


def is_passthrough(path: str) -> bool:
    """Whether a path is a framework or static path that is never rewritten."""
    return path in PASSTHROUGH_PATHS or path.startswith(PASSTHROUGH_PREFIXES)


class HostRouter:
    """Subdomain to page routing decisions.

    Stateless: each decision depends only on the host and path given.
    """

    def __init__(
        self,
        routes: Mapping[str, URLPath],
        *,
        preserve_subpath: bool = False,
    ) -> None:
        """Initialize the router.

        Args:
            routes: Subdomain to target page path mapping
            preserve_subpath: Keep the requested path under the target page
                instead of always landing on the bare target page
        """
        self._routes = {subdomain.lower(): target for subdomain, target in routes.items()}
        self._preserve_subpath = preserve_subpath

    @property
    def routes(self) -> dict[str, URLPath]:
        return dict(self._routes)

    @property
    def preserve_subpath(self) -> bool:
        return self._preserve_subpath

    def target_for(self, host: str) -> URLPath | None:
        """Target page path for a host, or None if it is not mapped."""
        subdomain = subdomain_of(host)
        if subdomain is None:
            return None
        return self._routes.get(subdomain)

    def resolve(self, host: str, path: str) -> str:
        """Compute the effective path of a request.

        Args:
            host: Host header value
            path: Requested path

        Returns:
            Rewritten path, or the requested path when no rewrite applies
        """
        target = self.target_for(host)
        if target is None or is_passthrough(path) or path == target:
            return path

        if not self._preserve_subpath:
            return target

        if path.startswith(f"{target}/"):
            return path
        if path in ("", "/"):
            return target
        return f"{target.rstrip('/')}/{path.lstrip('/')}"
