"""
RBAC error types

Every authorization failure is raised (or returned, for gates) as one of
these. The HTTP layer renders them through ``RBACError.to_dict`` with the
attached status code.
"""
from typing import Any, Dict, Iterable, Optional


class RBACError(Exception):
    """Base exception for authorization and role administration failures"""

    status_code = 500
    error_type = 'rbac_error'

    def __init__(
        self,
        message: str,
        required: Optional[Iterable[str]] = None,
        missing: Optional[Iterable[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.required = [str(r) for r in (required or [])]
        self.missing = [str(m) for m in (missing or [])]
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'success': False,
            'error': self.message,
            'error_type': self.error_type,
        }
        if self.required:
            payload['required'] = self.required
        if self.missing:
            payload['missing'] = self.missing
        if self.details:
            payload['details'] = self.details
        return payload


class Unauthenticated(RBACError):
    """No resolvable principal on the request"""
    status_code = 401
    error_type = 'unauthenticated'


class InsufficientRole(RBACError):
    status_code = 403
    error_type = 'insufficient_role'


class InsufficientPermission(RBACError):
    status_code = 403
    error_type = 'insufficient_permission'


class InsufficientSeniority(RBACError):
    """Actor does not outrank the target principal or the requested role"""
    status_code = 403
    error_type = 'insufficient_seniority'


class NotFound(RBACError):
    status_code = 404
    error_type = 'not_found'


class ValidationError(RBACError):
    """Malformed input to an administration operation"""
    status_code = 400
    error_type = 'validation_error'
