"""
Admin routes for role and permission management
"""
from flask import Blueprint, request, jsonify
import logging

from learnhub.rbac.decorators import login_required, permission_required, user_management_required
from learnhub.rbac.errors import RBACError
from learnhub.rbac.permissions import Permissions
from learnhub.rbac.utils import get_current_principal, get_principal_store, get_role_table
from learnhub.routes.schemas import (
    AssignRoleRequest,
    BulkAssignRoleRequest,
    PermissionsRequest,
    RoleChangeRequest,
    parse_body,
)
from learnhub.services import RoleManagementService

logger = logging.getLogger(__name__)
bp = Blueprint('role_management', __name__, url_prefix='/api/admin')


def _service() -> RoleManagementService:
    return RoleManagementService(get_principal_store(), get_role_table())


def _actor_id():
    return get_current_principal().id


def _error(e: RBACError):
    return jsonify(e.to_dict()), e.status_code


# ==================== ROLE ASSIGNMENT ====================

@bp.route('/users/<int:user_id>/role', methods=['POST'])
@login_required
@permission_required(Permissions.USER_MANAGE_ROLES)
@user_management_required('user_id')
def assign_role(user_id):
    """Assign a role (or several roles) to a user"""
    try:
        body = parse_body(AssignRoleRequest)
        service = _service()
        if body.roles:
            user = service.assign_roles(user_id, body.roles, _actor_id())
        else:
            user = service.assign_role(user_id, body.role, _actor_id())

        return jsonify({
            'success': True,
            'message': 'Role assigned successfully',
            'user': user.to_dict()
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error assigning role to user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to assign role'}), 500


@bp.route('/users/bulk-assign-role', methods=['POST'])
@login_required
@permission_required(Permissions.USER_MANAGE_ROLES)
def bulk_assign_role():
    """Assign one role to many users; each user succeeds or fails on its own"""
    try:
        body = parse_body(BulkAssignRoleRequest)
        results = _service().bulk_assign_role(body.user_ids, body.role, _actor_id())

        return jsonify({
            'success': True,
            'message': f"Bulk assignment completed: {len(results.success)} successful, {len(results.failed)} failed",
            'results': results.to_dict()
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error in bulk role assignment: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to perform bulk role assignment'}), 500


@bp.route('/users/<int:user_id>/validate-role-change', methods=['POST'])
@login_required
@permission_required(Permissions.USER_MANAGE_ROLES)
@user_management_required('user_id')
def validate_role_change(user_id):
    """Dry-run a role change without applying it"""
    try:
        body = parse_body(RoleChangeRequest)
        result = _service().check_role_change(user_id, body.new_role, _actor_id())

        return jsonify({
            'success': True,
            'validation': result.to_dict()
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error validating role change for user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to validate role change'}), 500


# ==================== EXTRA PERMISSIONS ====================

@bp.route('/users/<int:user_id>/permissions', methods=['POST'])
@login_required
@permission_required(Permissions.USER_MANAGE_PERMISSIONS)
@user_management_required('user_id')
def add_permissions(user_id):
    """Grant extra permissions to a user"""
    try:
        body = parse_body(PermissionsRequest)
        user = _service().add_extra_permissions(user_id, body.permissions, _actor_id())

        return jsonify({
            'success': True,
            'message': 'Permissions added successfully',
            'user': user.to_dict()
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error adding permissions to user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to add permissions'}), 500


@bp.route('/users/<int:user_id>/permissions', methods=['DELETE'])
@login_required
@permission_required(Permissions.USER_MANAGE_PERMISSIONS)
@user_management_required('user_id')
def remove_permissions(user_id):
    """Withdraw extra permissions from a user"""
    try:
        body = parse_body(PermissionsRequest)
        user = _service().remove_extra_permissions(user_id, body.permissions, _actor_id())

        return jsonify({
            'success': True,
            'message': 'Permissions removed successfully',
            'user': user.to_dict()
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error removing permissions from user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to remove permissions'}), 500


@bp.route('/users/<int:user_id>/reset-permissions', methods=['POST'])
@login_required
@permission_required(Permissions.USER_MANAGE_PERMISSIONS)
@user_management_required('user_id')
def reset_permissions(user_id):
    """Reset a user to exactly their role's default permissions"""
    try:
        user = _service().reset_to_role_defaults(user_id, _actor_id())

        return jsonify({
            'success': True,
            'message': 'User permissions reset to role defaults',
            'user': user.to_dict()
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error resetting permissions of user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to reset permissions'}), 500


# ==================== LISTINGS ====================

@bp.route('/users/roles', methods=['GET'])
@login_required
@permission_required(Permissions.USER_VIEW)
def get_users_with_roles():
    """List users with their roles and permissions"""
    try:
        role = request.args.get('role') or None
        permissions = [p.strip() for p in request.args.get('permissions', '').split(',') if p.strip()]
        search = request.args.get('search', '').strip() or None

        users = _service().get_users_with_roles(
            _actor_id(), role=role, permissions=permissions or None, search=search,
        )

        return jsonify({
            'success': True,
            'users': [u.to_dict() for u in users],
            'count': len(users)
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error getting users with roles: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to get users'}), 500


@bp.route('/roles/hierarchy', methods=['GET'])
@login_required
@permission_required(Permissions.USER_VIEW)
def get_role_hierarchy():
    """Roles in seniority order with their default permissions"""
    try:
        return jsonify({
            'success': True,
            **_service().get_role_hierarchy()
        })
    except Exception as e:
        logger.error(f"Error getting role hierarchy: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to get role hierarchy'}), 500


@bp.route('/users/<int:user_id>/permissions/analysis', methods=['GET'])
@login_required
def get_permission_analysis(user_id):
    """Break a user's permissions down into role defaults and extra grants"""
    try:
        analysis = _service().get_permission_analysis(user_id, _actor_id())

        return jsonify({
            'success': True,
            'analysis': analysis
        })
    except RBACError as e:
        return _error(e)
    except Exception as e:
        logger.error(f"Error getting permission analysis for user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to get permission analysis'}), 500
