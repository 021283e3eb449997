"""Interface profile registry.

Architectural role:
    Loads the interface configuration (a JSON file or an equivalent mapping),
    validates and normalizes each profile, and serves profile, rule, prefix and
    engine lookups to `ProxyFactory` and `Dispatcher`.

Loading flow:
    1. Read and parse the configuration file (or take the mapping as-is).
    2. Resolve rulebase, mock engine name and global status.
    3. Add each interface entry; invalid entries are logged and skipped.

Rule files:
    Mock rules are read from disk on every `get_rule` call. Caching is the
    dispatcher's concern.

Failure handling model:
    - Unreadable/invalid configuration and missing global status raise
      `ConfigurationError`.
    - Invalid individual profiles do not abort loading.
"""

import json
import logging
import os
import re
from typing import Any

from modelproxy.core.errors import ConfigurationError
from modelproxy.registry.profile import InterfaceProfile, MOCK_STATUSES

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = "mockjs"
DEFAULT_RULEBASE_DIR = "interfaceRules"

_ID_PATTERN = re.compile(r"^((\w+\.)*\w+)$")


class InterfaceManager:
    """Registry of interface profiles keyed by interface id."""

    def __init__(self, source: str | dict[str, Any] | None, status: str | None = None) -> None:
        """Load interface profiles.

        Args:
            source: Path of the interface JSON file, or the parsed mapping.
            status: Global status overriding the configured one.

        Raises:
            ConfigurationError: Unreadable file, invalid JSON or no status.
        """
        self._path = source if isinstance(source, str) else None
        self._interface_map: dict[str, InterfaceProfile] = {}
        self._rulebase = (
            os.path.join(os.path.dirname(source), DEFAULT_RULEBASE_DIR)
            if isinstance(source, str)
            else ""
        )
        self._engine = DEFAULT_ENGINE
        self._status: str | None = None

        if isinstance(source, str):
            self._load_profiles_from_path(source, status)
        else:
            self._load_profiles(source, status)

    def _load_profiles_from_path(self, path: str, status: str | None) -> None:
        logger.debug("Loading interface profiles. path=%s", path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            raise ConfigurationError(f"Fail to load interface profiles. {exc}") from exc

        try:
            profiles = json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Interface profiles has syntax error: {exc}") from exc

        self._load_profiles(profiles, status)

    def _load_profiles(self, profiles: dict[str, Any] | None, status: str | None) -> None:
        if not profiles:
            return

        logger.debug("Title: %s, Version: %s", profiles.get("title"), profiles.get("version"))

        if profiles.get("rulebase"):
            self._rulebase = str(profiles["rulebase"]).rstrip("/")

        self._engine = profiles.get("engine") or DEFAULT_ENGINE

        global_status = status if status else profiles.get("status")
        if global_status is None:
            raise ConfigurationError("There is no status specified in interface configuration!")
        self._status = global_status

        for item in profiles.get("interfaces") or []:
            if self._add_profile(item):
                logger.debug("Interface[%s] is loaded.", item["id"])

    def _add_profile(self, entry: dict[str, Any]) -> bool:
        """Validate, normalize and register one profile entry.

        Returns:
            Whether the profile was registered.

        Rejection cases (logged, not raised):
            - Missing id, or id not matching `^(\\w+\\.)*\\w+$`.
            - Duplicate id.
            - No urls configured and no rule file on disk.
        """
        if not isinstance(entry, dict) or not entry.get("id"):
            logger.error("Can not add interface profile without id!")
            return False

        interface_id = entry["id"]
        if not _ID_PATTERN.match(interface_id):
            logger.error("Invalid id: %s", interface_id)
            return False

        if self.is_profile_existed(interface_id):
            logger.error(
                "Can not repeat to add interface [%s]! Please check your interface configuration file!",
                interface_id,
            )
            return False

        rule_file = os.path.join(self._rulebase, entry.get("ruleFile") or f"{interface_id}.rule.json")
        urls = entry.get("urls") or {}

        if not urls and not os.path.exists(rule_file):
            logger.error(
                "Profile is deprecated: %s. No urls is configured and no ruleFile is available",
                interface_id,
            )
            return False

        status = entry.get("status")
        if not (status in urls or status in MOCK_STATUSES):
            status = self._status

        self._interface_map[interface_id] = InterfaceProfile.from_dict(
            entry, status=status, rule_file=rule_file
        )
        return True

    def get_profile(self, interface_id: str) -> InterfaceProfile | None:
        return self._interface_map.get(interface_id)

    def get_rule(self, interface_id: str) -> dict[str, Any]:
        """Read and parse the mock rule file of an interface.

        Returns:
            Rule mapping, normally with `response` and `responseError` keys.

        Raises:
            ConfigurationError: Unknown id, missing/unreadable file, bad JSON.
        """
        profile = self._interface_map.get(interface_id) if interface_id else None
        if profile is None:
            raise ConfigurationError(f"The interface profile {interface_id} is not found.")

        path = profile.rule_file
        if not path or not os.path.exists(path):
            raise ConfigurationError(f"The rule file is not existed. path = {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            raise ConfigurationError(f"Fail to read rulefile of path {path}") from exc

        try:
            return json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Rule file has syntax error. {exc} path = {path}") from exc

    def get_engine(self) -> str:
        return self._engine

    def get_status(self) -> str | None:
        return self._status

    def get_interface_ids_by_prefix(self, pattern: str) -> list[str]:
        """Return registered ids starting with `pattern`, in registration order."""
        if not pattern:
            return []
        return [interface_id for interface_id in self._interface_map if interface_id.startswith(pattern)]

    def get_interface_ids(self) -> list[str]:
        return list(self._interface_map)

    def is_profile_existed(self, interface_id: str) -> bool:
        return interface_id in self._interface_map
