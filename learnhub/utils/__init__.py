from .db import get_db, close_db, init_db
from .logger import setup_logger
from .role_seed import seed_roles

__all__ = [
    'get_db',
    'close_db',
    'init_db',
    'setup_logger',
    'seed_roles',
]
