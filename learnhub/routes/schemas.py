"""
Request body schemas for the RBAC API
"""
from typing import Any, List, Optional

from flask import request
from pydantic import BaseModel, Field, StrictInt, model_validator, ValidationError as PydanticValidationError

from learnhub.rbac.errors import ValidationError


class AssignRoleRequest(BaseModel):
    """Body of POST /api/admin/users/<id>/role"""
    role: Optional[str] = Field(None, min_length=1, description="Single role to assign")
    roles: Optional[List[str]] = Field(None, min_length=1, description="Several roles to assign at once")

    @model_validator(mode="after")
    def require_role_or_roles(self):
        if not self.role and not self.roles:
            raise ValueError("Role is required")
        return self


class PermissionsRequest(BaseModel):
    permissions: List[str] = Field(..., min_length=1, description="Permission tokens such as 'course:publish'")


class BulkAssignRoleRequest(BaseModel):
    user_ids: List[StrictInt] = Field(..., min_length=1, alias='userIds')
    role: str = Field(..., min_length=1)

    model_config = {'populate_by_name': True}


class RoleChangeRequest(BaseModel):
    new_role: str = Field(..., min_length=1, alias='newRole')

    model_config = {'populate_by_name': True}


class CreateUserRequest(BaseModel):
    """Body of POST /api/admin/users"""
    username: str = Field(..., min_length=1, max_length=255)
    useremail: str = Field(..., min_length=3, max_length=255, pattern=r'^[^@\s]+@[^@\s]+$')
    role: str = Field('user', min_length=1)
    permissions: Optional[List[str]] = Field(None, description="Extra grants on top of the role")


class UpdateUserRequest(BaseModel):
    """Body of PUT /api/admin/users/<id>; omitted fields stay unchanged"""
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    useremail: Optional[str] = Field(None, min_length=3, max_length=255, pattern=r'^[^@\s]+@[^@\s]+$')
    role: Optional[str] = Field(None, min_length=1)
    permissions: Optional[List[str]] = Field(None, description="Replaces the extra grants")

    @model_validator(mode="after")
    def require_some_field(self):
        if not self.model_fields_set:
            raise ValueError("Nothing to update")
        return self


class PermissionCheckRequest(BaseModel):
    permission: str = Field(..., min_length=1)


class AnyPermissionCheckRequest(BaseModel):
    permissions: List[str] = Field(..., min_length=1)


def parse_body(schema: type[BaseModel]) -> Any:
    """
    Validate the JSON body of the current request against ``schema``.

    Raises:
        ValidationError: body missing or not matching the schema
    """
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError('Request body must be a JSON object')
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {'field': '.'.join(str(p) for p in err['loc']), 'message': err['msg']}
            for err in e.errors()
        ]
        raise ValidationError('Invalid request body', details={'errors': errors})
