"""Presentation boundary: every operation returns a structured result.

Nothing raised inside a service crosses this boundary. Domain errors keep
their message; anything unexpected is logged with its traceback and reported
as a storage failure with a generic message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .exceptions import DomainError

logger = logging.getLogger(__name__)

HTTP_STATUS_BY_KIND = {
    "validation": 400,
    "unauthorized": 401,
    "not_found": 404,
    "conflict": 409,
    "state": 409,
    "storage": 500,
    "io": 500,
    "domain": 400,
}


@dataclass(frozen=True)
class OperationResult:
    success: bool
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def http_status(self) -> int:
        if self.success:
            return 200
        return HTTP_STATUS_BY_KIND.get(self.error or "", 500)

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            body["data"] = self.data
        if self.message:
            body["message"] = self.message
        if self.error:
            body["error"] = self.error
        return body


def run_operation(name: str, fn: Callable[[], Any], *, message: Optional[str] = None) -> OperationResult:
    try:
        data = fn()
    except DomainError as e:
        logger.info("%s failed (%s): %s", name, e.kind, e)
        return OperationResult(success=False, message=str(e), error=e.kind)
    except Exception:
        logger.exception("%s failed unexpectedly", name)
        return OperationResult(success=False, message="Unexpected server error", error="storage")
    return OperationResult(success=True, data=data, message=message)
