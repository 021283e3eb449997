"""Interface profile schema.

Architectural role:
    Defines the immutable description of one backend interface as loaded by
    `InterfaceManager` and consumed by `Dispatcher`.

Normalization:
    `InterfaceProfile.from_dict` maps the camelCase keys used in interface
    configuration files onto snake_case attributes and applies defaults. It
    does not validate ids or urls; that is the manager's responsibility.
"""

from dataclasses import dataclass, field, asdict
from typing import Any

STATUS_MOCK = "mock"
STATUS_MOCK_ERR = "mockerr"
MOCK_STATUSES = (STATUS_MOCK, STATUS_MOCK_ERR)

ENCODING_RAW = "raw"

DEFAULT_TIMEOUT_MS = 10000
DEFAULT_ENCODING = "utf8"

_METHODS = {"GET": "GET", "POST": "POST"}
_DATA_TYPES = {"json": "json", "text": "text", "jsonp": "jsonp"}


@dataclass(frozen=True)
class InterfaceProfile:
    """Declarative description of one backend endpoint or mock.

    Attributes:
        id: Unique dot-segmented interface id, for example `Search.getItems`.
        urls: Mapping of status name to endpoint URL.
        status: Active status (a key of `urls`, `mock` or `mockerr`).
        method: `GET` or `POST`.
        data_type: `json`, `text` or `jsonp`.
        timeout: Transport timeout in milliseconds.
        encoding: Response charset, or `raw` to skip decoding entirely.
        is_cookie_needed: Calls must carry a cookie.
        signed: Interface requires request signing upstream.
        is_rule_static: Mock fixtures are returned verbatim.
        rule_file: Path of the JSON mock rule file.
    """

    id: str
    urls: dict[str, str] = field(default_factory=dict)
    status: str | None = None
    method: str = "GET"
    data_type: str = "json"
    timeout: int = DEFAULT_TIMEOUT_MS
    encoding: str = DEFAULT_ENCODING
    is_cookie_needed: bool = False
    signed: bool = False
    is_rule_static: bool = False
    rule_file: str | None = None

    @property
    def is_mock(self) -> bool:
        return self.status in MOCK_STATUSES

    @classmethod
    def from_dict(cls, data: dict[str, Any], status: str | None = None, rule_file: str | None = None):
        """Build a normalized profile from a configuration entry.

        Args:
            data: Raw profile entry (camelCase keys).
            status: Status to use instead of the entry's own.
            rule_file: Resolved rule file path.
        """
        method = _METHODS.get(str(data.get("method") or "GET").upper(), "GET")
        data_type = _DATA_TYPES.get(str(data.get("dataType") or "json").lower(), "json")
        return cls(
            id=data["id"],
            urls=dict(data.get("urls") or {}),
            status=status if status is not None else data.get("status"),
            method=method,
            data_type=data_type,
            timeout=data.get("timeout") or DEFAULT_TIMEOUT_MS,
            encoding=data.get("encoding") or DEFAULT_ENCODING,
            is_cookie_needed=bool(data.get("isCookieNeeded")),
            signed=bool(data.get("signed")),
            is_rule_static=bool(data.get("isRuleStatic")),
            rule_file=rule_file if rule_file is not None else data.get("ruleFile"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the profile with configuration-file key names."""
        data = asdict(self)
        return {
            "id": data["id"],
            "urls": data["urls"],
            "status": data["status"],
            "method": data["method"],
            "dataType": data["data_type"],
            "timeout": data["timeout"],
            "encoding": data["encoding"],
            "isCookieNeeded": data["is_cookie_needed"],
            "signed": data["signed"],
            "isRuleStatic": data["is_rule_static"],
            "ruleFile": data["rule_file"],
        }
