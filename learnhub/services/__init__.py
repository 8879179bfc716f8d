from .role_management_service import RoleManagementService
from .user_management_service import UserManagementService

__all__ = ['RoleManagementService', 'UserManagementService']
