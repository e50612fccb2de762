"""
Role-Based Access Control – route protection and staff account lookup.

The router is a pure function of the request path and the two session
signals.  Guard rules run in a fixed order and the first one that returns a
decision wins; a request no rule claims is let through.
"""

from typing import Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy import text

from medportal.config import ROLE_COOKIE, STAFF_LOGIN_PATH, TOKEN_COOKIE
from medportal.models import (
    AccessContext,
    Continue,
    RedirectTo,
    RejectNotFound,
    Role,
    SessionSignals,
)

RoutingDecision = Union[Continue, RedirectTo, RejectNotFound]
GuardRule = Callable[[str, SessionSignals], Optional[RoutingDecision]]

DASHBOARD_ROOT = "/dashboard"

PUBLIC_PATHS: Tuple[str, ...] = ("/login", "/login/staff", "/register")

ROLE_HOMES: Dict[Role, str] = {
    Role.ADMIN: "/dashboard/admin",
    Role.LAB_TECHNICIAN: "/dashboard/lab-technician",
    Role.RECEPTIONIST: "/dashboard/receptionist",
}

SEGMENT_ROLES: Dict[str, Role] = {
    "admin": Role.ADMIN,
    "lab-technician": Role.LAB_TECHNICIAN,
    "receptionist": Role.RECEPTIONIST,
}

PROTECTED_PATHS: Dict[Role, Tuple[str, ...]] = {
    Role.ADMIN: (
        "/dashboard/admin",
        "/dashboard/admin/patients",
        "/dashboard/admin/lab-technicians",
        "/dashboard/admin/receptionists",
    ),
    Role.LAB_TECHNICIAN: (
        "/dashboard/lab-technician",
        "/dashboard/lab-technician/patients",
        "/dashboard/lab-technician/tests",
        "/dashboard/lab-technician/reports",
        "/dashboard/lab-technician/schedule",
        "/dashboard/lab-technician/settings",
    ),
    Role.RECEPTIONIST: (
        "/dashboard/receptionist",
        "/dashboard/receptionist/appointments",
        "/dashboard/receptionist/patients",
        "/dashboard/receptionist/reports",
    ),
}

# Sidebar entries shown on each staff dashboard.
ROLE_NAVIGATION: Dict[Role, List[Tuple[str, str]]] = {
    Role.ADMIN: [
        ("Overview", "/dashboard/admin"),
        ("Patients", "/dashboard/admin/patients"),
        ("Lab Technicians", "/dashboard/admin/lab-technicians"),
        ("Receptionists", "/dashboard/admin/receptionists"),
    ],
    Role.LAB_TECHNICIAN: [
        ("Overview", "/dashboard/lab-technician"),
        ("Patients", "/dashboard/lab-technician/patients"),
        ("Tests", "/dashboard/lab-technician/tests"),
        ("Reports", "/dashboard/lab-technician/reports"),
        ("Schedule", "/dashboard/lab-technician/schedule"),
        ("Settings", "/dashboard/lab-technician/settings"),
    ],
    Role.RECEPTIONIST: [
        ("Overview", "/dashboard/receptionist"),
        ("Appointments", "/dashboard/receptionist/appointments"),
        ("Patients", "/dashboard/receptionist/patients"),
        ("Reports", "/dashboard/receptionist/reports"),
    ],
}


def check_tables() -> None:
    """Raise ValueError if the routing tables are incomplete or overlap."""
    for table_name, table in (
        ("ROLE_HOMES", ROLE_HOMES),
        ("PROTECTED_PATHS", PROTECTED_PATHS),
        ("ROLE_NAVIGATION", ROLE_NAVIGATION),
    ):
        missing = set(Role) - set(table)
        if missing:
            raise ValueError(f"{table_name} has no entry for {sorted(r.value for r in missing)}")

    if set(SEGMENT_ROLES.values()) != set(Role):
        raise ValueError("SEGMENT_ROLES must map a path segment to every role")

    seen: Dict[str, Role] = {}
    for role, paths in PROTECTED_PATHS.items():
        for path in paths:
            if path in PUBLIC_PATHS:
                raise ValueError(f"Protected path {path} is also public")
            owner = seen.setdefault(path, role)
            if owner is not role:
                raise ValueError(f"Protected path {path} belongs to {owner.value} and {role.value}")


check_tables()


def role_home(role: Role) -> str:
    """Return the dashboard root for *role*."""
    return ROLE_HOMES[role]


def is_protected(path: str) -> bool:
    return any(path.startswith(p) for paths in PROTECTED_PATHS.values() for p in paths)


def role_for_path(path: str) -> Optional[Role]:
    """Map the role segment of a ``/dashboard/<segment>/...`` path to a Role."""
    parts = path.split("/")
    if len(parts) < 3:
        return None
    return SEGMENT_ROLES.get(parts[2])


# ── Guard rules ──────────────────────────────────────────────────────

def dashboard_root_rule(path: str, session: SessionSignals) -> Optional[RoutingDecision]:
    if path != DASHBOARD_ROOT:
        return None
    if not session.complete:
        return RejectNotFound()
    return RedirectTo(role_home(session.role))


def public_page_rule(path: str, session: SessionSignals) -> Optional[RoutingDecision]:
    """Keep signed-in staff away from the login and registration forms."""
    if path in PUBLIC_PATHS and session.complete:
        return RedirectTo(role_home(session.role))
    return None


def protected_path_rule(path: str, session: SessionSignals) -> Optional[RoutingDecision]:
    if not is_protected(path):
        return None
    if not session.complete:
        return RedirectTo(STAFF_LOGIN_PATH)
    if role_for_path(path) is not session.role:
        return RedirectTo(role_home(session.role))
    return Continue()


GUARD_RULES: Tuple[GuardRule, ...] = (
    dashboard_root_rule,
    public_page_rule,
    protected_path_rule,
)


def decide(path: str, role: Optional[Role] = None, token: Optional[str] = None) -> RoutingDecision:
    """Decide whether a request for *path* continues, redirects, or 404s."""
    session = SessionSignals(role=role, token=token or None)
    for rule in GUARD_RULES:
        decision = rule(path, session)
        if decision is not None:
            return decision
    return Continue()


def decide_from_cookies(path: str, cookies) -> RoutingDecision:
    """Run :func:`decide` on raw cookie values; unknown roles count as absent."""
    return decide(path, Role.parse(cookies.get(ROLE_COOKIE)), cookies.get(TOKEN_COOKIE))


# ── Staff accounts ───────────────────────────────────────────────────

def load_access_context(engine, api_key: str) -> AccessContext:
    """Look up a staff member by API key and return their AccessContext."""
    sql = text("""
        SELECT id, display_name, role
        FROM portal_users
        WHERE api_key = :k AND is_active = 1
    """)
    with engine.connect() as conn:
        row = conn.execute(sql, {"k": api_key}).mappings().first()

    if not row:
        raise ValueError("Invalid key or user inactive (no match in portal_users).")

    role = Role.parse(str(row["role"]).strip())
    if role is None:
        raise ValueError(f"Unsupported role '{row['role']}' in portal_users.")

    return AccessContext(
        user_id=int(row["id"]),
        display_name=str(row["display_name"]),
        role=role,
    )
