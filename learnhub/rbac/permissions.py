"""
Permission definitions for RBAC system

Every permission is a ``resource:action`` token. The enum below is the
complete catalog; each role declares its own default set independently.
"""
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping

from learnhub.rbac.roles import Role


class Permissions(str, Enum):
    """Available permissions in the system"""
    # Course permissions
    COURSE_VIEW = "course:view"
    COURSE_CREATE = "course:create"
    COURSE_EDIT = "course:edit"
    COURSE_DELETE = "course:delete"
    COURSE_PUBLISH = "course:publish"
    COURSE_UNPUBLISH = "course:unpublish"
    COURSE_MANAGE_OWN = "course:manage_own"
    COURSE_MANAGE_ALL = "course:manage_all"
    COURSE_ENROLL_STUDENTS = "course:enroll_students"
    COURSE_VIEW_ANALYTICS = "course:view_analytics"

    # Module permissions
    MODULE_VIEW = "module:view"
    MODULE_CREATE = "module:create"
    MODULE_EDIT = "module:edit"
    MODULE_DELETE = "module:delete"
    MODULE_REORDER = "module:reorder"
    MODULE_MANAGE_OWN = "module:manage_own"
    MODULE_MANAGE_ALL = "module:manage_all"

    # Content permissions
    CONTENT_VIEW = "content:view"
    CONTENT_CREATE = "content:create"
    CONTENT_EDIT = "content:edit"
    CONTENT_DELETE = "content:delete"
    CONTENT_UPLOAD = "content:upload"
    CONTENT_DOWNLOAD = "content:download"
    CONTENT_MANAGE_OWN = "content:manage_own"
    CONTENT_MANAGE_ALL = "content:manage_all"

    # Quiz permissions
    QUIZ_VIEW = "quiz:view"
    QUIZ_CREATE = "quiz:create"
    QUIZ_EDIT = "quiz:edit"
    QUIZ_DELETE = "quiz:delete"
    QUIZ_TAKE = "quiz:take"
    QUIZ_VIEW_RESULTS = "quiz:view_results"
    QUIZ_GRADE = "quiz:grade"
    QUIZ_MANAGE_OWN = "quiz:manage_own"
    QUIZ_MANAGE_ALL = "quiz:manage_all"

    # Student permissions
    STUDENT_VIEW = "student:view"
    STUDENT_ENROLL = "student:enroll"
    STUDENT_UNENROLL = "student:unenroll"
    STUDENT_VIEW_PROGRESS = "student:view_progress"
    STUDENT_MANAGE_PROGRESS = "student:manage_progress"
    STUDENT_ISSUE_CERTIFICATES = "student:issue_certificates"
    STUDENT_COMMUNICATE = "student:communicate"

    # Blog permissions
    BLOG_VIEW = "blog:view"
    BLOG_CREATE = "blog:create"
    BLOG_EDIT = "blog:edit"
    BLOG_DELETE = "blog:delete"
    BLOG_PUBLISH = "blog:publish"
    BLOG_UNPUBLISH = "blog:unpublish"
    BLOG_COMMENT = "blog:comment"
    BLOG_MODERATE_COMMENTS = "blog:moderate_comments"
    BLOG_MANAGE_OWN = "blog:manage_own"
    BLOG_MANAGE_ALL = "blog:manage_all"

    # Internship permissions
    INTERNSHIP_VIEW = "internship:view"
    INTERNSHIP_APPLY = "internship:apply"
    INTERNSHIP_MANAGE_APPLICATIONS = "internship:manage_applications"
    INTERNSHIP_REVIEW_APPLICATIONS = "internship:review_applications"
    INTERNSHIP_ACCEPT_REJECT = "internship:accept_reject"
    INTERNSHIP_COMMUNICATE = "internship:communicate"
    INTERNSHIP_MANAGE_PROGRAM = "internship:manage_program"

    # User management permissions
    USER_VIEW = "user:view"
    USER_CREATE = "user:create"
    USER_EDIT = "user:edit"
    USER_DELETE = "user:delete"
    USER_MANAGE_ROLES = "user:manage_roles"
    USER_MANAGE_PERMISSIONS = "user:manage_permissions"
    USER_VIEW_PROFILE = "user:view_profile"
    USER_EDIT_PROFILE = "user:edit_profile"
    USER_IMPERSONATE = "user:impersonate"

    # Analytics permissions
    ANALYTICS_VIEW_BASIC = "analytics:view_basic"
    ANALYTICS_VIEW_ADVANCED = "analytics:view_advanced"
    ANALYTICS_EXPORT_DATA = "analytics:export_data"
    ANALYTICS_VIEW_FINANCIAL = "analytics:view_financial"

    # System permissions
    SYSTEM_BACKUP = "system:backup"
    SYSTEM_RESTORE = "system:restore"
    SYSTEM_CONFIGURE = "system:configure"
    SYSTEM_MAINTENANCE = "system:maintenance"
    SYSTEM_LOGS = "system:logs"

    # Payment permissions
    PAYMENT_VIEW = "payment:view"
    PAYMENT_PROCESS = "payment:process"
    PAYMENT_REFUND = "payment:refund"
    PAYMENT_VIEW_REPORTS = "payment:view_reports"
    PAYMENT_MANAGE_PRICING = "payment:manage_pricing"

    def __str__(self):
        return self.value

    @property
    def resource(self) -> str:
        return self.value.split(':', 1)[0]

    @property
    def action(self) -> str:
        return self.value.split(':', 1)[1]

    @classmethod
    def from_string(cls, permission_str: str) -> 'Permissions':
        """Convert a token to the enum; raises ValueError for unknown tokens."""
        if isinstance(permission_str, cls):
            return permission_str
        return cls(str(permission_str).strip())

    @classmethod
    def is_valid(cls, permission_str: str) -> bool:
        """Check if a string is a catalog permission"""
        try:
            cls.from_string(permission_str)
        except ValueError:
            return False
        return True


ALL_PERMISSIONS: FrozenSet[Permissions] = frozenset(Permissions)


def _group_by_resource() -> Mapping[str, tuple]:
    groups: dict[str, list] = {}
    for permission in Permissions:
        groups.setdefault(permission.resource, []).append(permission)
    return MappingProxyType({k: tuple(v) for k, v in groups.items()})


# resource -> permissions, for documentation and admin listings
PERMISSION_GROUPS = _group_by_resource()


P = Permissions

# Default permissions for each role
_DECLARED_ROLE_PERMISSIONS: dict[Role, FrozenSet[Permissions]] = {
    # Basic user - public content and own profile
    Role.USER: frozenset({
        P.COURSE_VIEW,
        P.BLOG_VIEW,
        P.BLOG_COMMENT,
        P.INTERNSHIP_VIEW,
        P.INTERNSHIP_APPLY,
        P.USER_VIEW_PROFILE,
        P.USER_EDIT_PROFILE,
    }),

    # Student - enrolled in courses, takes quizzes
    Role.STUDENT: frozenset({
        P.COURSE_VIEW,
        P.MODULE_VIEW,
        P.CONTENT_VIEW,
        P.CONTENT_DOWNLOAD,
        P.QUIZ_VIEW,
        P.QUIZ_TAKE,
        P.QUIZ_VIEW_RESULTS,
        P.STUDENT_ENROLL,
        P.BLOG_VIEW,
        P.BLOG_COMMENT,
        P.INTERNSHIP_VIEW,
        P.INTERNSHIP_APPLY,
        P.USER_VIEW_PROFILE,
        P.USER_EDIT_PROFILE,
        P.ANALYTICS_VIEW_BASIC,
    }),

    # Instructor - creates and manages own courses
    Role.INSTRUCTOR: frozenset({
        P.COURSE_VIEW,
        P.COURSE_CREATE,
        P.COURSE_MANAGE_OWN,
        P.COURSE_PUBLISH,
        P.COURSE_ENROLL_STUDENTS,
        P.COURSE_VIEW_ANALYTICS,
        P.MODULE_VIEW,
        P.MODULE_CREATE,
        P.MODULE_MANAGE_OWN,
        P.CONTENT_VIEW,
        P.CONTENT_CREATE,
        P.CONTENT_UPLOAD,
        P.CONTENT_MANAGE_OWN,
        P.QUIZ_VIEW,
        P.QUIZ_CREATE,
        P.QUIZ_MANAGE_OWN,
        P.QUIZ_GRADE,
        P.STUDENT_VIEW,
        P.STUDENT_VIEW_PROGRESS,
        P.STUDENT_ISSUE_CERTIFICATES,
        P.STUDENT_COMMUNICATE,
        P.BLOG_VIEW,
        P.BLOG_COMMENT,
        P.USER_VIEW_PROFILE,
        P.USER_EDIT_PROFILE,
        P.ANALYTICS_VIEW_BASIC,
        P.PAYMENT_VIEW,
    }),

    # Author - creates and manages own blog content
    Role.AUTHOR: frozenset({
        P.COURSE_VIEW,
        P.BLOG_VIEW,
        P.BLOG_CREATE,
        P.BLOG_MANAGE_OWN,
        P.BLOG_PUBLISH,
        P.BLOG_COMMENT,
        P.INTERNSHIP_VIEW,
        P.USER_VIEW_PROFILE,
        P.USER_EDIT_PROFILE,
        P.ANALYTICS_VIEW_BASIC,
    }),

    # Editor - edits content across the platform
    Role.EDITOR: frozenset({
        P.COURSE_VIEW,
        P.COURSE_EDIT,
        P.MODULE_VIEW,
        P.MODULE_EDIT,
        P.CONTENT_VIEW,
        P.CONTENT_EDIT,
        P.QUIZ_VIEW,
        P.QUIZ_EDIT,
        P.BLOG_VIEW,
        P.BLOG_CREATE,
        P.BLOG_EDIT,
        P.BLOG_PUBLISH,
        P.BLOG_UNPUBLISH,
        P.BLOG_MANAGE_ALL,
        P.BLOG_MODERATE_COMMENTS,
        P.INTERNSHIP_VIEW,
        P.USER_VIEW_PROFILE,
        P.USER_EDIT_PROFILE,
        P.ANALYTICS_VIEW_BASIC,
    }),

    # Moderator - moderates content and user interactions
    Role.MODERATOR: frozenset({
        P.COURSE_VIEW,
        P.MODULE_VIEW,
        P.CONTENT_VIEW,
        P.QUIZ_VIEW,
        P.STUDENT_VIEW,
        P.STUDENT_COMMUNICATE,
        P.BLOG_VIEW,
        P.BLOG_EDIT,
        P.BLOG_PUBLISH,
        P.BLOG_UNPUBLISH,
        P.BLOG_MODERATE_COMMENTS,
        P.BLOG_MANAGE_ALL,
        P.INTERNSHIP_VIEW,
        P.INTERNSHIP_REVIEW_APPLICATIONS,
        P.INTERNSHIP_COMMUNICATE,
        P.USER_VIEW,
        P.USER_EDIT_PROFILE,
        P.ANALYTICS_VIEW_BASIC,
    }),

    # Admin - full platform management except system-level operations
    Role.ADMIN: frozenset({
        P.COURSE_VIEW,
        P.COURSE_CREATE,
        P.COURSE_EDIT,
        P.COURSE_DELETE,
        P.COURSE_PUBLISH,
        P.COURSE_UNPUBLISH,
        P.COURSE_MANAGE_ALL,
        P.COURSE_ENROLL_STUDENTS,
        P.COURSE_VIEW_ANALYTICS,
        P.MODULE_VIEW,
        P.MODULE_CREATE,
        P.MODULE_EDIT,
        P.MODULE_DELETE,
        P.MODULE_REORDER,
        P.MODULE_MANAGE_ALL,
        P.CONTENT_VIEW,
        P.CONTENT_CREATE,
        P.CONTENT_EDIT,
        P.CONTENT_DELETE,
        P.CONTENT_UPLOAD,
        P.CONTENT_DOWNLOAD,
        P.CONTENT_MANAGE_ALL,
        P.QUIZ_VIEW,
        P.QUIZ_CREATE,
        P.QUIZ_EDIT,
        P.QUIZ_DELETE,
        P.QUIZ_GRADE,
        P.QUIZ_MANAGE_ALL,
        P.STUDENT_VIEW,
        P.STUDENT_ENROLL,
        P.STUDENT_UNENROLL,
        P.STUDENT_VIEW_PROGRESS,
        P.STUDENT_MANAGE_PROGRESS,
        P.STUDENT_ISSUE_CERTIFICATES,
        P.STUDENT_COMMUNICATE,
        P.BLOG_VIEW,
        P.BLOG_CREATE,
        P.BLOG_EDIT,
        P.BLOG_DELETE,
        P.BLOG_PUBLISH,
        P.BLOG_UNPUBLISH,
        P.BLOG_MODERATE_COMMENTS,
        P.BLOG_MANAGE_ALL,
        P.INTERNSHIP_VIEW,
        P.INTERNSHIP_MANAGE_APPLICATIONS,
        P.INTERNSHIP_REVIEW_APPLICATIONS,
        P.INTERNSHIP_ACCEPT_REJECT,
        P.INTERNSHIP_COMMUNICATE,
        P.INTERNSHIP_MANAGE_PROGRAM,
        P.USER_VIEW,
        P.USER_CREATE,
        P.USER_EDIT,
        P.USER_MANAGE_ROLES,
        P.USER_MANAGE_PERMISSIONS,
        P.ANALYTICS_VIEW_BASIC,
        P.ANALYTICS_VIEW_ADVANCED,
        P.ANALYTICS_EXPORT_DATA,
        P.ANALYTICS_VIEW_FINANCIAL,
        P.PAYMENT_VIEW,
        P.PAYMENT_PROCESS,
        P.PAYMENT_REFUND,
        P.PAYMENT_VIEW_REPORTS,
        P.PAYMENT_MANAGE_PRICING,
    }),

    # Super admin - the whole catalog, so new permissions extend it automatically
    Role.SUPER_ADMIN: ALL_PERMISSIONS,
}

del P

ROLE_PERMISSIONS: Mapping[Role, FrozenSet[Permissions]] = MappingProxyType(_DECLARED_ROLE_PERMISSIONS)

assert ROLE_PERMISSIONS[Role.SUPER_ADMIN] == ALL_PERMISSIONS, "super-admin must hold every permission"
assert set(ROLE_PERMISSIONS) == set(Role), "every role needs a declared permission set"


def get_permissions_for_role(role: Role | str | None) -> FrozenSet[Permissions]:
    """
    Get all default permissions for a given role.

    Args:
        role: Role enum or role string

    Returns:
        Frozen set of permissions; empty for an unknown role
    """
    role_enum = Role.from_string(role)
    if role_enum is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(role_enum, frozenset())


def has_permission(role: Role | str, permission: Permissions | str) -> bool:
    """
    Check if a role grants a specific permission by default.

    Args:
        role: Role enum or role string
        permission: Permission enum or permission string

    Returns:
        True if role has the permission, False otherwise
    """
    if not Permissions.is_valid(permission):
        return False
    return Permissions.from_string(permission) in get_permissions_for_role(role)
