"""
Simple role-based authorization for FastAPI endpoints.
"""

from typing import List, Optional
from fastapi import Depends, HTTPException, status
from packledger.auth.jwt_handler import verify_jwt_token

# Роли сотрудников ресепшена и администрации
FRONT_DESK_ROLES = ["ADMIN", "OWNER", "STAFF"]


def get_current_user(allowed_roles: Optional[List[str]] = None):
    """
    Dependency factory to create a get_current_user dependency with role checking.

    Args:
        allowed_roles: List of role strings that are allowed to access the endpoint.
                      If None, any authenticated user can access.

    Example:
        @router.post("/pack-assignments/")
        def create(current_user=Depends(get_current_user(["ADMIN", "OWNER"]))):
            ...
    """
    def dependency(current_user_data = Depends(verify_jwt_token)):
        if not current_user_data:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required"
            )

        if allowed_roles is None:
            return current_user_data

        user_role = current_user_data.get("role")
        if not user_role:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User role not found"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {allowed_roles}, your role: {user_role}"
            )

        return current_user_data

    return dependency
