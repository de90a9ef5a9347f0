"""FastAPI dependencies: service container access and bearer auth."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from supportdesk.errors import AuthError, ForbiddenError
from supportdesk.services.auth import AuthPayload
from supportdesk.services.container import ServiceContainer

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


Container = Annotated[ServiceContainer, Depends(get_container)]


def get_auth(
    container: Container,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AuthPayload:
    """Decode the ``Authorization: Bearer`` token."""
    if credentials is None or not credentials.credentials:
        raise AuthError("Authentication required", code="UNAUTHORIZED")
    return container.auth.decode_token(credentials.credentials)


Auth = Annotated[AuthPayload, Depends(get_auth)]


def require_owner(auth: Auth) -> AuthPayload:
    """Only owners and admins acting on behalf of a tenant."""
    if not auth.is_owner:
        raise ForbiddenError("Owner access required", code="FORBIDDEN")
    if not auth.tenant_id:
        raise ForbiddenError("No tenant associated", code="NO_TENANT")
    return auth


OwnerAuth = Annotated[AuthPayload, Depends(require_owner)]
