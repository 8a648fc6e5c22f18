# connectors/schema.py

from dataclasses import dataclass
from typing import Any, Optional, Tuple
from urllib.parse import SplitResult


DEFAULT_MANAGER_PATH = "/manager"
DEFAULT_PORTS = {"http": 80, "https": 443}


# --------------------------
# Server endpoint
# --------------------------

@dataclass(frozen=True)
class ServerEndpoint:
    """One managed Tomcat instance, as registered."""
    url: SplitResult
    username: Optional[str] = None
    password: Optional[str] = None
    manager_path: str = DEFAULT_MANAGER_PATH
    index: int = 0          # registration position

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def host(self) -> str:
        return self.url.hostname or ""

    @property
    def port(self) -> int:
        return self.url.port or DEFAULT_PORTS.get(self.scheme, 80)

    @property
    def label(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}"

    @property
    def credentials(self) -> Optional[Tuple[str, str]]:
        if self.username is not None and self.password is not None:
            return (self.username, self.password)
        return None

    @property
    def display_url(self) -> str:
        user = f"{self.username}:***@" if self.username is not None else ""
        return f"{self.scheme}://{user}{self.label}{self.manager_path}"

    def __str__(self) -> str:
        return f"#{self.index} {self.label}"


# --------------------------
# Manager list record
# --------------------------

@dataclass(frozen=True)
class ApplicationStatus:
    context: str                     # always starts with "/"
    state: str                       # opaque, e.g. running / stopped
    sessions: str                    # raw text as reported
    doc_base: Optional[str] = None   # fourth field on newer managers

    @property
    def is_running(self) -> bool:
        return self.state == "running"

    def session_count(self) -> Optional[int]:
        """Sessions as an int, or None when the manager reported something else."""
        try:
            return int(self.sessions.strip())
        except (ValueError, AttributeError):
            return None


# --------------------------
# Lifecycle command result
# --------------------------

@dataclass(frozen=True)
class CommandOutcome:
    command: str
    context: str
    issued: bool                        # False when the guard skipped the call
    status_code: Optional[int] = None
    message: str = ""                   # first line of the manager response

    @property
    def ok(self) -> bool:
        if not self.issued or self.status_code is None:
            return False
        return 200 <= self.status_code < 300 and not self.message.startswith("FAIL")


# --------------------------
# Fan-out result
# --------------------------

@dataclass
class ServerResult:
    endpoint: ServerEndpoint
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
