"""Magic code verification outcome and mode types."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

LOGIN_OPERATION = "login"


class MagicCodeResult(str, Enum):
    """Outcome of a magic code verification."""

    SUCCESS = "success"
    BLOCKED_BY_IP = "blocked_by_ip"
    BLOCKED_BY_USER = "blocked_by_user"
    INVALID = "invalid"


class VerifyMode(str, Enum):
    """
    How a successful verification consumes the code.

    LOGIN only consumes the login eligibility of the code (except for the
    "login" operation itself). OPERATION revokes the code.
    """

    LOGIN = "login"
    OPERATION = "operation"


class VerificationStatus(str, Enum):
    OK = "ok"
    ERR = "err"
    UNHANDLED = "unhandled"


@dataclass(frozen=True)
class VerificationResult:
    """Result handed back to the host authentication layer."""

    status: VerificationStatus
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "VerificationResult":
        return cls(VerificationStatus.OK)

    @classmethod
    def err(cls, error: str) -> "VerificationResult":
        return cls(VerificationStatus.ERR, error)

    @classmethod
    def unhandled(cls, error: Optional[str] = None) -> "VerificationResult":
        return cls(VerificationStatus.UNHANDLED, error)

    @property
    def is_ok(self) -> bool:
        return self.status == VerificationStatus.OK
