"""
Domain types used across the application.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Staff roles, valued by the exact names stored in the ``role`` cookie."""
    ADMIN = "Admin"
    LAB_TECHNICIAN = "LabTechnician"
    RECEPTIONIST = "Receptionist"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Return the matching role, or None for a missing or unknown value."""
        if not value:
            return None
        for role in cls:
            if role.value == value:
                return role
        return None


@dataclass(frozen=True)
class SessionSignals:
    """Per-request credential markers read from cookies (never verified here)."""
    role: Optional[Role] = None
    token: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.role is not None and bool(self.token)


# ── Routing decisions ────────────────────────────────────────────────

@dataclass(frozen=True)
class Continue:
    """Let the request through to its handler."""


@dataclass(frozen=True)
class RedirectTo:
    """Send the client to another path."""
    path: str


@dataclass(frozen=True)
class RejectNotFound:
    """Answer as if the path did not exist."""


# ── National ID ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class NationalIdResult:
    """Outcome of decoding a national ID; only ``valid`` is set on failure."""
    valid: bool
    birth_date: Optional[date] = None
    sex: Optional[str] = None               # "male" or "female"
    century: Optional[int] = None           # 1900 or 2000
    governorate_code: Optional[str] = None
    governorate: Optional[str] = None       # None for codes outside the table
    sequence: Optional[str] = None
    check_digit: Optional[str] = None


# ── ID-card classifier ───────────────────────────────────────────────

@dataclass(frozen=True)
class Prediction:
    """One class/confidence pair returned by the ID-card classifier."""
    class_name: str
    confidence: float


@dataclass
class IdCardVerdict:
    """Pass/fail result of the ID-card confidence gate."""
    is_valid: bool
    confidence: float
    message: str
    note: Optional[str] = None
    predictions: list = field(default_factory=list)


# ── Staff accounts ───────────────────────────────────────────────────

@dataclass
class AccessContext:
    """Represents the authenticated staff member's identity."""
    user_id: int
    display_name: str
    role: Role
