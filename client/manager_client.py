# client/manager_client.py
"""
Manager Client - HTTP client for one Tomcat manager endpoint.

Wraps the text manager commands (list, deploy, undeploy, start, stop, reload)
and parses the `list` response into ApplicationStatus records.
"""

import logging
import re
import time
from typing import Callable, List, Optional
from urllib.parse import quote, urlencode

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from connectors.errors import ProtocolParseError, TransportError
from connectors.schema import ApplicationStatus, CommandOutcome, ServerEndpoint

logger = logging.getLogger("tcfleet.client")


HEADER_RE = re.compile(r"Listed applications for virtual host ")
SLASHES_RE = re.compile(r"/+")


def normalize_path(path: str = "") -> str:
    """Collapse runs of '/' in the path component. The query string is left alone."""
    path = path or "/"
    base, sep, query = path.partition("?")
    return SLASHES_RE.sub("/", base) + sep + query


def parse_application_list(body: str) -> List[ApplicationStatus]:
    """
    Parse a manager `list` body.

    Each line is context:state:sessions[:docBase]. The "Listed applications for
    virtual host ..." header and blank lines are skipped; any other line that
    does not have at least three fields, or whose context does not start with
    '/', raises ProtocolParseError.
    """
    apps: List[ApplicationStatus] = []
    for lineno, raw in enumerate((body or "").splitlines(), start=1):
        line = raw.strip()
        if not line or HEADER_RE.search(line):
            continue

        fields = line.split(":", 3)
        if len(fields) < 3 or not fields[0].startswith("/"):
            raise ProtocolParseError(
                f"Malformed manager list line {lineno}: {line!r}",
                {"line": lineno, "text": line},
            )

        context, state, sessions = fields[0], fields[1], fields[2]
        doc_base = fields[3] if len(fields) > 3 else None
        apps.append(ApplicationStatus(context=context, state=state, sessions=sessions, doc_base=doc_base))
    return apps


def _context_path(context: str) -> str:
    return "/" + (context or "").lstrip("/")


class ManagerClient:
    """
    Client bound to exactly one ServerEndpoint.

    Every call opens its own session and closes it before returning; nothing
    is cached, so each status query is a fresh `list` round trip.
    """

    def __init__(
        self,
        server: ServerEndpoint,
        timeout: Optional[float] = None,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ):
        """
        Args:
            server: endpoint this client talks to
            timeout: per-request timeout in seconds (None = transport default)
            session_factory: callable returning a requests.Session-like object
        """
        self.server = server
        self.timeout = timeout
        self._session_factory = session_factory or requests.Session

    def __repr__(self) -> str:
        return f"ManagerClient({self.server.display_url})"

    # --------------------------
    # Transport
    # --------------------------
    def _open_session(self):
        session = self._session_factory()
        if isinstance(session, requests.Session):
            # auth comes from the endpoint only, not from ~/.netrc
            session.trust_env = False
            # no retries: a failure is reported once, to the caller
            adapter = HTTPAdapter(max_retries=Retry(total=0, redirect=False, raise_on_status=False))
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        return session

    def raw_get(self, path: str = "") -> requests.Response:
        """
        Issue a GET for path against the endpoint and return the response.

        Non-2xx responses are returned, not raised; transport failures are
        raised as TransportError.
        """
        path = normalize_path(path)
        url = f"{self.server.base_url}{path}"
        auth = self.server.credentials

        logger.debug(f"GET {self.server.label}{path}")
        start_time = time.time()
        try:
            with self._open_session() as session:
                response = session.get(url, auth=auth, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransportError(
                f"Request to {self.server.label} timed out after {self.timeout}s",
                {"server": self.server.label, "path": path},
            ) from e
        except requests.exceptions.RequestException as e:
            logger.debug(f"Transport error from {self.server.label}: {e}")
            raise TransportError(
                f"Unable to reach {self.server.label}: {type(e).__name__}",
                {"server": self.server.label, "path": path},
            ) from e

        elapsed = time.time() - start_time
        logger.debug(f"{self.server.label}{path} -> {response.status_code} ({elapsed:.2f}s)")
        return response

    # backwards-compatible short name
    get = raw_get

    def is_reachable(self) -> bool:
        return self.raw_get("/").status_code == 200

    ok = is_reachable

    # --------------------------
    # Queries
    # --------------------------
    def list_applications(self) -> List[ApplicationStatus]:
        response = self.raw_get(f"{self.server.manager_path}/list")
        if not 200 <= response.status_code < 300:
            raise ProtocolParseError(
                f"Manager list on {self.server.label} returned HTTP {response.status_code}",
                {"server": self.server.label, "status_code": response.status_code},
            )
        return parse_application_list(response.text)

    list = list_applications

    def get_application_status(self, context: str) -> Optional[ApplicationStatus]:
        wanted = _context_path(context)
        for app in self.list_applications():
            if app.context == wanted:
                return app
        return None

    manager_info = get_application_status

    def is_deployed(self, context: str) -> bool:
        return self.get_application_status(context) is not None

    def is_running(self, context: str) -> bool:
        app = self.get_application_status(context)
        if app is None:
            return False
        return app.is_running

    status = is_running

    def get_session_count(self, context: str) -> Optional[str]:
        """Raw sessions field, or None when the context is not deployed."""
        app = self.get_application_status(context)
        if app is None:
            return None
        return app.sessions

    sessions = get_session_count

    # --------------------------
    # Lifecycle commands
    # --------------------------
    def _command(self, command: str, context: str, **extra: str) -> CommandOutcome:
        params = [("deployPath", _context_path(context))]
        params.extend(extra.items())
        query = urlencode(params, safe="/:", quote_via=quote)
        response = self.raw_get(f"{self.server.manager_path}/{command}?{query}")

        lines = (response.text or "").splitlines()
        message = lines[0].strip() if lines else ""
        outcome = CommandOutcome(
            command=command,
            context=_context_path(context),
            issued=True,
            status_code=response.status_code,
            message=message,
        )
        if outcome.ok:
            logger.info(f"{command} {outcome.context} on {self.server.label}: {message}")
        else:
            logger.warning(f"{command} {outcome.context} on {self.server.label} -> HTTP {response.status_code}: {message}")
        return outcome

    def _skipped(self, command: str, context: str, reason: str) -> CommandOutcome:
        logger.info(f"Skipping {command} {_context_path(context)} on {self.server.label}: {reason}")
        return CommandOutcome(command=command, context=_context_path(context), issued=False, message=reason)

    def undeploy(self, context: str) -> CommandOutcome:
        if not self.is_deployed(context):
            return self._skipped("undeploy", context, "not deployed")
        return self._command("undeploy", context)

    def deploy(self, context: str, config_file: str) -> CommandOutcome:
        if self.is_deployed(context):
            return self._skipped("deploy", context, "already deployed")
        return self._command("deploy", context, deployConfig=config_file)

    def stop(self, context: str) -> CommandOutcome:
        if not (self.is_deployed(context) and self.is_running(context)):
            return self._skipped("stop", context, "not deployed or not running")
        return self._command("stop", context)

    def start(self, context: str) -> CommandOutcome:
        if not (self.is_deployed(context) and not self.is_running(context)):
            return self._skipped("start", context, "not deployed or already running")
        return self._command("start", context)

    def reload(self, context: str) -> CommandOutcome:
        if not (self.is_deployed(context) and self.is_running(context)):
            return self._skipped("reload", context, "not deployed or not running")
        return self._command("reload", context)
