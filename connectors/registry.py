# connectors/registry.py
"""
Server registry.
Parses manager connection strings into ServerEndpoint records and keeps them
in registration order.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

from connectors.errors import MalformedURLError
from connectors.schema import DEFAULT_MANAGER_PATH, DEFAULT_PORTS, ServerEndpoint
from utils.data_masking import mask_url

logger = logging.getLogger("tcfleet.registry")


def normalize_manager_path(manager_path: Optional[str]) -> str:
    path = (manager_path or DEFAULT_MANAGER_PATH).strip()
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def parse_connection_string(connection_string: str) -> Tuple[Any, Optional[str], Optional[str]]:
    """
    Split scheme://[user:pass@]host[:port][/path] into (url, username, password).

    The user-info segment is split on its first ':' only, so passwords may
    themselves contain ':'.
    """
    safe = mask_url(connection_string)

    if not isinstance(connection_string, str) or not connection_string.strip():
        raise MalformedURLError("Empty connection string", {"url": safe})

    try:
        url = urlsplit(connection_string.strip())
        # .port validates the port lazily
        url.port
    except ValueError as e:
        raise MalformedURLError(f"Invalid server URL '{safe}': {e}", {"url": safe}) from e

    if url.scheme not in DEFAULT_PORTS:
        raise MalformedURLError(
            f"Unsupported or missing scheme in '{safe}' (expected http or https)",
            {"url": safe},
        )
    if not url.hostname:
        raise MalformedURLError(f"Missing host in '{safe}'", {"url": safe})

    username = password = None
    if "@" in url.netloc:
        userinfo = url.netloc.rpartition("@")[0]
        if ":" not in userinfo:
            raise MalformedURLError(
                f"User-info in '{safe}' must be of the form user:password",
                {"url": safe},
            )
        username, _, password = userinfo.partition(":")

    return url, username, password


class ServerRegistry:
    """Ordered set of configured manager endpoints. No deduplication."""

    def __init__(self, servers: Optional[Iterable[str]] = None, manager_path: str = DEFAULT_MANAGER_PATH):
        self._servers: List[ServerEndpoint] = []
        if servers:
            self.register_many(servers, manager_path=manager_path)

    def register(self, connection_string: str, manager_path: str = DEFAULT_MANAGER_PATH) -> ServerEndpoint:
        """Parse connection_string and append the resulting endpoint."""
        url, username, password = parse_connection_string(connection_string)
        endpoint = ServerEndpoint(
            url=url,
            username=username,
            password=password,
            manager_path=normalize_manager_path(manager_path),
            index=len(self._servers),
        )
        self._servers.append(endpoint)
        logger.info(f"Registered server {endpoint} ({endpoint.display_url})")
        return endpoint

    def register_many(self, connection_strings: Iterable[str], manager_path: str = DEFAULT_MANAGER_PATH) -> List[ServerEndpoint]:
        return [self.register(s, manager_path=manager_path) for s in connection_strings]

    @classmethod
    def from_config(cls, fleet_config: Dict[str, Any], manager_path: Optional[str] = None) -> "ServerRegistry":
        """
        Build a registry from a loaded fleet config:
            {"defaults": {"manager_path": ...}, "servers": [{"url": ..., "manager_path": ...}]}

        A per-server manager_path wins, then the manager_path argument, then
        defaults.manager_path.
        """
        registry = cls()
        defaults = fleet_config.get("defaults", {}) or {}
        default_path = manager_path or defaults.get("manager_path") or DEFAULT_MANAGER_PATH
        for server in fleet_config.get("servers", []) or []:
            registry.register(server["url"], manager_path=server.get("manager_path") or default_path)
        return registry

    @property
    def servers(self) -> Tuple[ServerEndpoint, ...]:
        return tuple(self._servers)

    def __iter__(self) -> Iterator[ServerEndpoint]:
        return iter(tuple(self._servers))

    def __len__(self) -> int:
        return len(self._servers)
