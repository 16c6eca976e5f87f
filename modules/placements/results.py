"""Operation results returned by the engine and the posting layer.

Business-rule failures are values, not exceptions: every operation
returns an OperationResult with a ResultCode and a readable error.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


class ResultCode(enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"                  # unknown application/internship/actor id
    NOT_OWNER = "not_owner"                  # actor may not touch the target
    INVALID_STATE = "invalid_state"          # status forbids the transition
    CAPACITY_EXCEEDED = "capacity_exceeded"  # no free slot
    POLICY_VIOLATION = "policy_violation"    # eligibility / limits


@dataclass
class OperationResult:
    ok: bool
    code: ResultCode
    error: Optional[str] = None
    application_id: Optional[int] = None
    internship_id: Optional[int] = None

    @classmethod
    def success(
        cls,
        application_id: Optional[int] = None,
        internship_id: Optional[int] = None,
    ) -> "OperationResult":
        return cls(
            ok=True,
            code=ResultCode.OK,
            application_id=application_id,
            internship_id=internship_id,
        )

    @classmethod
    def failure(
        cls,
        code: ResultCode,
        error: str,
        application_id: Optional[int] = None,
        internship_id: Optional[int] = None,
    ) -> "OperationResult":
        return cls(
            ok=False,
            code=code,
            error=error,
            application_id=application_id,
            internship_id=internship_id,
        )

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "code": self.code.value,
            "error": self.error,
            "application_id": self.application_id,
            "internship_id": self.internship_id,
        }


def refuse(
    operation: str,
    code: ResultCode,
    error: str,
    application_id: Optional[int] = None,
    internship_id: Optional[int] = None,
) -> OperationResult:
    """Log a refused operation and build its failure result."""
    logger.warning(f"{operation} refused ({code.value}): {error}")
    return OperationResult.failure(
        code, error,
        application_id=application_id,
        internship_id=internship_id,
    )
