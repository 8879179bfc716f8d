"""
Admin routes for user accounts
"""
from flask import Blueprint, request, jsonify
import logging

from learnhub.rbac.decorators import (
    any_permission_required,
    login_required,
    permission_required,
    user_management_required,
)
from learnhub.rbac.errors import RBACError
from learnhub.rbac.permissions import Permissions
from learnhub.rbac.utils import get_current_principal, get_principal_store, get_role_table
from learnhub.routes.schemas import CreateUserRequest, UpdateUserRequest, parse_body
from learnhub.services import UserManagementService

logger = logging.getLogger(__name__)
bp = Blueprint('user_management', __name__, url_prefix='/api/admin/users')


def _service() -> UserManagementService:
    return UserManagementService(get_principal_store(), get_role_table())


def _actor_id():
    return get_current_principal().id


@bp.route('', methods=['GET'])
@login_required
@any_permission_required(Permissions.USER_VIEW, Permissions.USER_MANAGE_ROLES, Permissions.USER_MANAGE_PERMISSIONS)
def list_users():
    """Paged user list, filterable by role and a name/email search"""
    try:
        result = _service().list_users(
            _actor_id(),
            page=request.args.get('page', 1, type=int),
            limit=request.args.get('limit', 20, type=int),
            search=request.args.get('search', '').strip() or None,
            role=request.args.get('role') or None,
        )

        return jsonify({
            'success': True,
            'users': [u.to_dict() for u in result['users']],
            'meta': result['meta']
        })
    except RBACError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error listing users: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to fetch users'}), 500


@bp.route('/<int:user_id>', methods=['GET'])
@login_required
@permission_required(Permissions.USER_VIEW)
def get_user(user_id):
    try:
        user = _service().get_user(user_id, _actor_id())
        return jsonify({'success': True, 'user': user.to_dict()})
    except RBACError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to get user'}), 500


@bp.route('', methods=['POST'])
@login_required
@permission_required(Permissions.USER_CREATE)
def create_user():
    """Create a user; the role handed out must rank below the caller's"""
    try:
        body = parse_body(CreateUserRequest)
        user = _service().create_user(
            _actor_id(),
            username=body.username,
            useremail=body.useremail,
            role=body.role,
            permissions=body.permissions,
        )

        return jsonify({
            'success': True,
            'message': 'User created successfully',
            'user': user.to_dict()
        }), 201
    except RBACError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to create user'}), 500


@bp.route('/<int:user_id>', methods=['PUT'])
@login_required
@permission_required(Permissions.USER_EDIT)
@user_management_required('user_id')
def update_user(user_id):
    try:
        body = parse_body(UpdateUserRequest)
        user = _service().update_user(
            user_id,
            _actor_id(),
            username=body.username,
            useremail=body.useremail,
            role=body.role,
            permissions=body.permissions,
        )

        return jsonify({
            'success': True,
            'message': 'User updated',
            'user': user.to_dict()
        })
    except RBACError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to update user'}), 500


@bp.route('/<int:user_id>', methods=['DELETE'])
@login_required
@permission_required(Permissions.USER_DELETE)
@user_management_required('user_id')
def delete_user(user_id):
    try:
        _service().delete_user(user_id, _actor_id())
        return jsonify({'success': True, 'message': 'User deleted'})
    except RBACError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to delete user'}), 500
