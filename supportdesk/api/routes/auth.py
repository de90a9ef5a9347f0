"""Registration and login for owners and customers."""

from fastapi import APIRouter, status

from supportdesk.api.dependencies import Auth, Container
from supportdesk.models.api import (
    AuthResponse,
    CustomerRegisterRequest,
    LoginRequest,
    MeResponse,
    OwnerRegisterRequest,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/owner/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_owner(request: OwnerRegisterRequest, container: Container) -> AuthResponse:
    """Create an owner account and its business."""
    return container.auth.register_owner(
        email=request.email,
        password=request.password,
        name=request.name,
        business_name=request.business_name,
        business_slug=request.business_slug,
    )


@router.post("/owner/login", response_model=AuthResponse)
def login_owner(request: LoginRequest, container: Container) -> AuthResponse:
    return container.auth.login_owner(request.email, request.password)


@router.post("/customer/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_customer(request: CustomerRegisterRequest, container: Container) -> AuthResponse:
    """Create a customer account, claiming the visitor's anonymous conversations."""
    return container.auth.register_customer(
        email=request.email,
        password=request.password,
        name=request.name,
        visitor_id=request.visitor_id,
    )


@router.post("/customer/login", response_model=AuthResponse)
def login_customer(request: LoginRequest, container: Container) -> AuthResponse:
    return container.auth.login_customer(request.email, request.password, visitor_id=request.visitor_id)


@router.get("/me", response_model=MeResponse, response_model_exclude_none=True)
def me(auth: Auth, container: Container) -> MeResponse:
    return container.auth.me(auth)
