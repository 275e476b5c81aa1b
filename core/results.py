"""
Operation Results

Small result container returned by service helpers instead of raising across
module boundaries. Callers check ``result.success`` and surface
``result.error`` themselves; views can turn a result into a DRF response.

Author: DSP Development Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.response import Response

from .exceptions import AcademyException


@dataclass
class OperationResult:
    """Outcome of a service call: ``{success, error}`` plus optional payload."""

    success: bool
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    status_code: int = status.HTTP_200_OK

    @classmethod
    def ok(cls, **data) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls, error: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR, **data
    ) -> "OperationResult":
        return cls(success=False, error=error, data=data, status_code=status_code)

    @classmethod
    def from_exception(cls, exc: AcademyException) -> "OperationResult":
        return cls(
            success=False,
            error=exc.message,
            data=dict(exc.details),
            status_code=exc.status_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "error": self.error, **self.data}

    def to_response(self, success_status: int = status.HTTP_200_OK) -> Response:
        if self.success:
            return Response(self.to_dict(), status=success_status)
        return Response(self.to_dict(), status=self.status_code)
