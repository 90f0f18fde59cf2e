from fastapi import Depends, HTTPException, status
from classhub.models.users import User
from classhub.schemas.users import UserRole
from classhub.core.dependencies import get_current_user
from classhub.services.scope import Scope, resolve_scope


def require_roles(*roles: UserRole):
    """
    Returns a dependency that checks if the current user has one of the required roles.
    """
    def permission_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return current_user
    return permission_dependency


def scoped(*roles: UserRole):
    """Role allow-list plus scope resolution in one dependency."""
    def scope_dependency(current_user: User = Depends(require_roles(*roles))) -> Scope:
        return resolve_scope(current_user)
    return scope_dependency


ALL_STAFF = (UserRole.ADMIN, UserRole.GOVERNMENT, UserRole.PRINCIPAL, UserRole.TEACHER)
ALL_ROLES = ALL_STAFF + (UserRole.STUDENT,)
