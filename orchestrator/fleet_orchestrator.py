# orchestrator/fleet_orchestrator.py
import os
import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

from client.manager_client import ManagerClient
from connectors.errors import TcFleetError
from connectors.registry import ServerRegistry
from connectors.schema import ServerEndpoint, ServerResult


# ================================================================
# >>>> Central logging setup
# ================================================================
LOG_FILE_NAME = "tcfleet.log"


def configure_root_logger(level=None, log_dir=None):
    level = level or logging.getLevelName(os.environ.get("TCFLEET_LOG_LEVEL", "INFO").upper())
    logger = logging.getLogger("tcfleet")

    if logger.handlers:
        return logger        # Already set up

    logger.setLevel(level)
    fmt = "%(asctime)s %(levelname)-5s %(name)s %(message)s"
    formatter = logging.Formatter(fmt)

    # File handler
    log_dir = Path(log_dir or os.environ.get("TCFLEET_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / LOG_FILE_NAME),
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8"
    )
    fh.setFormatter(formatter)
    fh.setLevel(level)
    logger.addHandler(fh)

    # Console handler
    ch = logging.StreamHandler(stream=sys.stdout)
    ch.setFormatter(formatter)
    ch.setLevel(level)
    logger.addHandler(ch)

    logger.propagate = False
    return logger


logger = logging.getLogger("tcfleet.orchestrator")


# operation name -> ManagerClient method name
OPERATIONS = {
    "is_reachable": "is_reachable",
    "ok": "is_reachable",
    "list_applications": "list_applications",
    "list": "list_applications",
    "get_application_status": "get_application_status",
    "manager_info": "get_application_status",
    "is_deployed": "is_deployed",
    "is_running": "is_running",
    "status": "is_running",
    "get_session_count": "get_session_count",
    "sessions": "get_session_count",
    "deploy": "deploy",
    "undeploy": "undeploy",
    "start": "start",
    "stop": "stop",
    "reload": "reload",
}


class FleetOrchestrator:
    """
    Sequential fan-out of one manager operation to every registered server.

    Results are keyed by the ServerEndpoint itself, in registration order.
    """

    def __init__(
        self,
        registry: ServerRegistry,
        timeout: Optional[float] = None,
        session_factory: Optional[Callable[[], Any]] = None,
    ):
        self.registry = registry
        self.timeout = timeout
        self.session_factory = session_factory

    def client_for(self, server: ServerEndpoint) -> ManagerClient:
        return ManagerClient(server, timeout=self.timeout, session_factory=self.session_factory)

    def clients(self) -> Iterator[ManagerClient]:
        """Yield a fresh ManagerClient per registered server, in order."""
        for server in self.registry:
            yield self.client_for(server)

    def dispatch(self, operation: str, *args, fail_fast: bool = False) -> Dict[ServerEndpoint, ServerResult]:
        """
        Run `operation` with `args` against every server.

        With fail_fast=False a TcFleetError from one server is recorded in that
        server's ServerResult and the remaining servers still run. With
        fail_fast=True the first error propagates.
        """
        method_name = OPERATIONS.get(operation)
        if method_name is None:
            raise ValueError(f"Unknown operation '{operation}'. Known: {', '.join(sorted(OPERATIONS))}")

        logger.info(f"Dispatching {operation} to {len(self.registry)} server(s)")
        results: Dict[ServerEndpoint, ServerResult] = {}

        for client in self.clients():
            server = client.server
            method = getattr(client, method_name)
            try:
                value = method(*args)
            except TcFleetError as e:
                if fail_fast:
                    logger.error(f"{operation} failed on {server}: {e}; aborting fan-out")
                    raise
                logger.warning(f"{operation} failed on {server}: {e}")
                results[server] = ServerResult(endpoint=server, error=e)
                continue

            results[server] = ServerResult(endpoint=server, value=value)

        return results

    exec = dispatch

    @staticmethod
    def summarize(results: Dict[ServerEndpoint, ServerResult]) -> Dict[str, int]:
        ok = sum(1 for r in results.values() if r.ok)
        return {"total": len(results), "ok": ok, "failed": len(results) - ok}
