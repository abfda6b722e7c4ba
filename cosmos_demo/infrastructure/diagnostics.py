"""
Per-call Cosmos DB diagnostics.

Every response (and every ``CosmosHttpResponseError``) carries headers with
the request charge, the backend activity id and the server-side duration.
These are collected into a :class:`CosmosDiagnostics` value and attached to
the span of the call that produced them.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

REQUEST_CHARGE_HEADER = "x-ms-request-charge"
ACTIVITY_ID_HEADER = "x-ms-activity-id"
SERVER_DURATION_HEADER = "x-ms-request-duration-ms"


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    # SDK headers are case-insensitive; plain dicts may not be.
    value = headers.get(name)
    if value is None:
        value = headers.get(name.title())
    return None if value is None else str(value)


@dataclass(frozen=True)
class CosmosDiagnostics:
    request_charge: float = 0.0
    activity_id: Optional[str] = None
    server_duration_ms: Optional[float] = None

    @classmethod
    def from_headers(cls, headers: Optional[Mapping[str, Any]]) -> "CosmosDiagnostics":
        if not headers:
            return cls()
        charge = _header(headers, REQUEST_CHARGE_HEADER)
        duration = _header(headers, SERVER_DURATION_HEADER)
        return cls(
            request_charge=float(charge) if charge else 0.0,
            activity_id=_header(headers, ACTIVITY_ID_HEADER),
            server_duration_ms=float(duration) if duration else None,
        )

    def __str__(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)


class DiagnosticsRecorder:
    """
    ``response_hook`` for the Cosmos SDK.

    The SDK calls the hook with the response headers once the call completes;
    the last headers seen are kept as :attr:`diagnostics`.
    """

    def __init__(self) -> None:
        self.diagnostics = CosmosDiagnostics()

    def __call__(self, headers: Optional[Mapping[str, Any]], result: Any = None) -> None:
        del result
        self.diagnostics = CosmosDiagnostics.from_headers(headers)


__all__ = ["CosmosDiagnostics", "DiagnosticsRecorder"]
