from .database_models import Base, RoleRecord, User
from .models import PrincipalStore

__all__ = [
    'Base',
    'RoleRecord',
    'User',
    'PrincipalStore',
]
