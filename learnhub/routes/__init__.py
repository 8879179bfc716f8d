from .me import bp as me_bp
from .role_management import bp as role_management_bp
from .user_management import bp as user_management_bp

__all__ = ['me_bp', 'role_management_bp', 'user_management_bp']
