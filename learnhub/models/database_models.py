"""SQLAlchemy database models for the application"""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class User(Base):
    """User privilege record"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True)
    useremail = Column(String(255), nullable=False, unique=True)
    # Primary (most senior) role; kept for single-role readers
    role = Column(String(50), nullable=False, default='user', server_default='user')
    roles = Column(JSON, nullable=False, default=list)
    extra_permissions = Column(JSON, nullable=False, default=list)
    # Hand-edited permissions carried over from legacy single-role records
    manual_permissions = Column(JSON, nullable=False, default=list)
    # Materialized effective permissions, rewritten on every privilege change
    permissions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow,
                        server_default=func.now())

    __table_args__ = (
        Index('idx_users_role', 'role'),
    )


class RoleRecord(Base):
    """Persisted mirror of a role definition"""
    __tablename__ = 'roles'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    title = Column(String(100), nullable=True)
    level = Column(Integer, nullable=False, default=0)
    permissions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow,
                        server_default=func.now())
