# config/config_loader.py

import logging
import os
from pathlib import Path

import yaml

from connectors.errors import ConfigError
from utils.data_masking import mask_config

logger = logging.getLogger("tcfleet.config")

DEFAULT_TIMEOUT = 30


class ConfigLoader:
    def __init__(self, base_dir="config"):
        self.base_dir = Path(base_dir)

    def _load_yaml(self, path: Path):
        if not Path(path).exists():
            raise ConfigError(f"YAML not found: {path}", {"path": str(path)})
        try:
            return yaml.safe_load(Path(path).read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", {"path": str(path)}) from e

    def list_environments(self):
        """
        List all available environments by scanning config directory.

        Returns:
            list: Sorted list of environment names
        """
        envs = []
        if not self.base_dir.exists():
            return envs

        for item in self.base_dir.iterdir():
            if item.is_dir() and (item / f"{item.name}.yaml").exists():
                envs.append(item.name)

        return sorted(envs)

    def load_environment(self, env_name: str, explicit_path: str = None):
        """
        1) If explicit_path is FILE → load that file.
        2) If explicit_path is DIR → load DIR/<env>.yaml
        3) Otherwise → load config/<env>/<env>.yaml
        """
        if explicit_path:
            exp = Path(explicit_path)

            # CASE 1 — explicit_path = file
            if exp.is_file():
                return self._load_yaml(exp)

            if env_name is None:
                raise ConfigError(f"Config path {exp} is not a file and no environment was given")

            # CASE 2 — explicit_path = directory
            return self._load_yaml(exp / f"{env_name}.yaml")

        if env_name is None:
            raise ConfigError("Environment name cannot be None")

        # CASE 3 — normal runtime path: config/<env>/<env>.yaml
        return self._load_yaml(self.base_dir / env_name / f"{env_name}.yaml")

    def load_fleet(self, env_name: str = None, explicit_path: str = None) -> dict:
        """
        Load and validate a fleet file.

        Returns:
            dict: {"defaults": {"manager_path", "timeout"}, "servers": [{"url", "manager_path"?}]}

        Server URLs may reference environment variables as ${VAR}; they are
        expanded here so credentials can stay out of the file.
        """
        raw = self.load_environment(env_name, explicit_path=explicit_path)
        if not isinstance(raw, dict):
            raise ConfigError("Fleet config must be a mapping with a 'servers' list")

        defaults = raw.get("defaults", {}) or {}
        if not isinstance(defaults, dict):
            raise ConfigError("'defaults' must be a mapping")

        timeout = defaults.get("timeout", DEFAULT_TIMEOUT)
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid timeout: {timeout!r}") from e
            if timeout <= 0:
                raise ConfigError(f"Timeout must be greater than 0, got {timeout!r}")

        servers = []
        for i, entry in enumerate(raw.get("servers", []) or []):
            # plain string entries are accepted as bare URLs
            if isinstance(entry, str):
                entry = {"url": entry}
            if not isinstance(entry, dict) or not entry.get("url"):
                raise ConfigError(f"Server entry {i} has no 'url'", {"index": i})

            server = {"url": os.path.expandvars(str(entry["url"]))}
            if entry.get("manager_path"):
                server["manager_path"] = entry["manager_path"]
            servers.append(server)

        logger.debug(f"Fleet servers: {mask_config(servers)}")
        logger.info(f"Loaded fleet config for '{env_name or explicit_path}' ({len(servers)} servers)")
        return {
            "defaults": {
                "manager_path": defaults.get("manager_path") or "/manager",
                "timeout": timeout,
            },
            "servers": servers,
        }
