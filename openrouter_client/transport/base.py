"""Request/response shapes shared by the transport and its callers."""

from dataclasses import dataclass, field
from typing import Any

# Methods that may carry a JSON body; GET/DELETE never do
BODY_METHODS = frozenset({"POST", "PATCH", "PUT"})


@dataclass
class RequestDescriptor:
    endpoint: str                      # path relative to the base URL, query included
    method: str = "GET"
    body: dict[str, Any] = field(default_factory=dict)
    credential: str = ""               # empty for unauthenticated calls
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def sends_body(self) -> bool:
        return self.method.upper() in BODY_METHODS and bool(self.body)


@dataclass
class ResponseEnvelope:
    status_code: int                   # 0 when no response was received
    headers: dict[str, str]
    body: Any                          # decoded JSON, raw text, or None
    duration_ms: int
    started_at: float                  # UTC epoch seconds
    finished_at: float

    def as_dict(self) -> dict[str, Any]:
        """Shape expected by ApiLogStore.log()."""
        return {
            "status_code": self.status_code,
            "headers": self.headers,
            "body": self.body,
            "duration_ms": self.duration_ms,
            "timestamp": self.finished_at,
        }
