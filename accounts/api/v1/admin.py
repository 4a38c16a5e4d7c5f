"""Admin endpoints (RBAC): list users and assign roles."""

from typing import Annotated

from fastapi import APIRouter, Depends

from accounts.api.v1.deps import Principal, get_store, require_admin
from accounts.schemas.admin import ChangeRoleRequest
from accounts.schemas.auth import PublicUser
from accounts.schemas.envelope import ApiResponse, ok
from accounts.services import admin as admin_service
from accounts.services.credential_store import CredentialStore

router = APIRouter()


@router.get("/users", response_model=ApiResponse[list[PublicUser]])
def list_users(
    _admin: Annotated[Principal, Depends(require_admin)],
    store: Annotated[CredentialStore, Depends(get_store)],
) -> ApiResponse:
    """List all users (admin only). Hashes and tokens are never included."""
    users = admin_service.list_users(store)
    return ok(200, "Users fetched successfully!", [PublicUser.model_validate(u) for u in users])


@router.patch("/assign-role", response_model=ApiResponse[PublicUser])
def assign_role(
    body: ChangeRoleRequest,
    _admin: Annotated[Principal, Depends(require_admin)],
    store: Annotated[CredentialStore, Depends(get_store)],
) -> ApiResponse:
    """Change a user's role. The new role applies to access tokens issued afterwards."""
    user = admin_service.change_role(store, body.user_id, body.role)
    return ok(200, "User role updated successfully!", PublicUser.model_validate(user))
