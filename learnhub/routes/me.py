"""
Routes for the logged-in user's own permissions
"""
from flask import Blueprint, g, jsonify
import logging

from learnhub.rbac.decorators import login_required, role_rate_limit
from learnhub.rbac.errors import RBACError
from learnhub.rbac.resolver import effective_permissions_of, has_permission
from learnhub.rbac.utils import get_current_principal, get_role_table
from learnhub.routes.schemas import AnyPermissionCheckRequest, PermissionCheckRequest, parse_body

logger = logging.getLogger(__name__)
bp = Blueprint('me', __name__, url_prefix='/api/me/permissions')


def _user_summary(principal):
    return {
        'id': principal.id,
        'role': principal.role,
    }


@bp.route('', methods=['GET'])
@login_required
@role_rate_limit
def get_my_permissions():
    """Effective permissions of the current user, split by where they come from"""
    try:
        principal = get_current_principal()
        role_table = get_role_table()
        from_role = set()
        for role in principal.assigned_roles:
            from_role.update(p.value for p in role_table.permissions_for(role))

        return jsonify({
            'success': True,
            'user': {
                **_user_summary(principal),
                'username': principal.username,
                'useremail': principal.useremail,
            },
            'permissions': {
                'effective': sorted(effective_permissions_of(principal, role_table)),
                'from_role': sorted(from_role),
                'extra': sorted(principal.extra_permissions),
                'roles': sorted(principal.assigned_roles),
            },
            'rate_limit': g.rate_limit,
        })
    except Exception as e:
        logger.error(f"Error fetching user permissions: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to fetch user permissions'}), 500


@bp.route('/check', methods=['POST'])
@login_required
def check_my_permission():
    """Whether the current user holds one permission"""
    try:
        body = parse_body(PermissionCheckRequest)
        principal = get_current_principal()

        return jsonify({
            'success': True,
            'permission': body.permission,
            'has_permission': has_permission(principal, body.permission),
            'user': _user_summary(principal)
        })
    except RBACError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error checking user permission: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to check permission'}), 500


@bp.route('/check-any', methods=['POST'])
@login_required
def check_my_any_permission():
    """Whether the current user holds at least one of several permissions"""
    try:
        body = parse_body(AnyPermissionCheckRequest)
        principal = get_current_principal()
        results = [
            {'permission': p, 'has_permission': has_permission(principal, p)}
            for p in body.permissions
        ]

        return jsonify({
            'success': True,
            'has_any_permission': any(r['has_permission'] for r in results),
            'results': results,
            'user': _user_summary(principal)
        })
    except RBACError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error checking user permissions: {str(e)}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to check permissions'}), 500
