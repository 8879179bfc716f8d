"""
Role definitions and seniority ordering for the RBAC system
"""
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """User roles in the system"""
    USER = "user"
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    AUTHOR = "author"
    EDITOR = "editor"
    MODERATOR = "moderator"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"

    def __str__(self):
        return self.value

    @classmethod
    def from_string(cls, role_str: Optional[str]) -> Optional['Role']:
        """
        Convert string to Role enum.

        Unknown or empty values return None; callers treat that as a
        zero-privilege role rather than guessing a default.
        """
        if isinstance(role_str, cls):
            return role_str
        if not role_str:
            return None
        role_str = str(role_str).lower().strip()
        for role in cls:
            if role.value == role_str:
                return role
        return None

    @classmethod
    def is_valid(cls, role_str: Optional[str]) -> bool:
        """Check if a string is a valid role"""
        return cls.from_string(role_str) is not None

    @classmethod
    def get_all(cls) -> list[str]:
        """Get all role values as strings"""
        return [role.value for role in cls]


# Seniority order, lowest first. Used only to decide who may manage whom;
# a senior role does not inherit a junior role's permissions.
ROLE_HIERARCHY: tuple[Role, ...] = (
    Role.USER,
    Role.STUDENT,
    Role.AUTHOR,
    Role.INSTRUCTOR,
    Role.EDITOR,
    Role.MODERATOR,
    Role.ADMIN,
    Role.SUPER_ADMIN,
)

ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Requests per hour handed to the rate limiter; -1 is unlimited
ROLE_RATE_LIMITS = {
    Role.USER: 100,
    Role.STUDENT: 200,
    Role.AUTHOR: 300,
    Role.INSTRUCTOR: 500,
    Role.EDITOR: 400,
    Role.MODERATOR: 600,
    Role.ADMIN: 1000,
    Role.SUPER_ADMIN: -1,
}
DEFAULT_RATE_LIMIT = 100


def hierarchy_index(role: Role | str | None) -> int:
    """Position of a role in ROLE_HIERARCHY, or -1 for an unknown role."""
    role_enum = Role.from_string(role)
    if role_enum is None:
        return -1
    return ROLE_HIERARCHY.index(role_enum)


def is_senior(role_a: Role | str | None, role_b: Role | str | None) -> bool:
    """True when role_a ranks strictly above role_b."""
    return hierarchy_index(role_a) > hierarchy_index(role_b)


def most_senior(roles) -> Optional[Role]:
    """Highest ranked known role out of an iterable of roles, or None."""
    known = [Role.from_string(r) for r in roles]
    known = [r for r in known if r is not None]
    if not known:
        return None
    return max(known, key=hierarchy_index)


def get_role_display_name(role: Role | str) -> str:
    """Human readable role name, e.g. 'Super Admin'."""
    role_enum = Role.from_string(role)
    if role_enum is None:
        return str(role)
    return role_enum.value.replace('-', ' ').title()


def get_rate_limit(roles) -> int:
    """Hourly request limit of the most senior known role; -1 means unlimited."""
    role_enum = most_senior(roles)
    if role_enum is None:
        return DEFAULT_RATE_LIMIT
    return ROLE_RATE_LIMITS[role_enum]
