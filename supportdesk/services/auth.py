"""Owner and customer authentication: bcrypt passwords, HS256 JWTs."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from supportdesk.db.repositories import Repositories
from supportdesk.errors import AppError, AuthError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from supportdesk.models.api import AuthResponse, MeResponse, TenantSummary, UserSummary
from supportdesk.utils.logging import get_logger
from supportdesk.utils.validation import validate_slug

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class AuthPayload:
    """Claims carried by an access token."""

    user_id: str
    role: str
    tenant_id: str | None = None

    @property
    def is_owner(self) -> bool:
        return self.role in ("owner", "admin")


class AuthService:
    """Registration, login and token handling."""

    def __init__(
        self,
        repositories: Repositories,
        jwt_secret: str | None,
        jwt_expires_days: int = 7,
        bcrypt_rounds: int = 12,
    ):
        self.repos = repositories
        self.jwt_secret = jwt_secret
        self.jwt_expires_days = jwt_expires_days
        self.bcrypt_rounds = bcrypt_rounds

    # Passwords

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], password_hash.encode("utf-8"))

    # Tokens

    def create_token(self, payload: AuthPayload) -> str:
        """Sign a token valid for ``jwt_expires_days``."""
        if not self.jwt_secret:
            raise AppError("JWT secret not configured", code="CONFIG_ERROR", status_code=500)

        now = datetime.now(UTC)
        claims: dict[str, object] = {
            "userId": payload.user_id,
            "role": payload.role,
            "iat": now,
            "exp": now + timedelta(days=self.jwt_expires_days),
        }
        if payload.tenant_id:
            claims["tenantId"] = payload.tenant_id
        return jwt.encode(claims, self.jwt_secret, algorithm=JWT_ALGORITHM)

    def decode_token(self, token: str) -> AuthPayload:
        """Verify a token and return its claims.

        Raises:
            AuthError: If the token is expired, malformed or lacks a user id
        """
        if not self.jwt_secret:
            raise AppError("JWT secret not configured", code="CONFIG_ERROR", status_code=500)

        try:
            claims = jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise AuthError("Token expired", code="TOKEN_EXPIRED") from e
        except jwt.InvalidTokenError as e:
            raise AuthError("Invalid token", code="INVALID_TOKEN") from e

        if not claims.get("userId") or not claims.get("role"):
            raise AuthError("Invalid token payload", code="INVALID_TOKEN")

        return AuthPayload(user_id=claims["userId"], role=claims["role"], tenant_id=claims.get("tenantId"))

    # Owners

    def register_owner(
        self,
        email: str | None,
        password: str | None,
        name: str | None,
        business_name: str | None,
        business_slug: str | None,
    ) -> AuthResponse:
        """Create an owner account together with its tenant."""
        if not email or not password or not name or not business_name or not business_slug:
            raise ValidationError("All fields are required", code="MISSING_FIELDS")
        self._check_password_strength(password)

        slug_check = validate_slug(business_slug)
        if not slug_check.valid:
            raise ValidationError(slug_check.error, code="INVALID_SLUG")

        if self.repos.users.find_by_email(email):
            raise ConflictError("Email already registered", code="EMAIL_EXISTS")
        if self.repos.tenants.find_by_slug(business_slug):
            raise ConflictError("Business slug already taken", code="SLUG_EXISTS")

        user = self.repos.users.create(
            email=email,
            password_hash=self.hash_password(password),
            name=name,
            role="owner",
        )
        tenant = self.repos.tenants.create(
            owner_id=user.id,
            name=business_name,
            slug=business_slug,
            settings={"welcomeMessage": f"Welcome to {business_name}! How can we help you today?"},
        )
        logger.info(f"Registered owner {user.id} for tenant {tenant.slug}")

        token = self.create_token(AuthPayload(user_id=user.id, role=user.role, tenant_id=tenant.id))
        return AuthResponse(token=token, user=UserSummary.from_user(user), tenant=TenantSummary.from_tenant(tenant))

    def login_owner(self, email: str | None, password: str | None) -> AuthResponse:
        if not email or not password:
            raise ValidationError("Email and password are required", code="MISSING_CREDENTIALS")

        user = self.repos.users.find_by_email(email)
        if user is None or not user.password_hash:
            raise AuthError("Invalid credentials", code="INVALID_CREDENTIALS")
        if user.role not in ("owner", "admin"):
            raise ForbiddenError("Access denied. Use customer login.", code="WRONG_LOGIN_TYPE")
        if not self.verify_password(password, user.password_hash):
            raise AuthError("Invalid credentials", code="INVALID_CREDENTIALS")

        tenant = self.repos.tenants.find_by_owner_id(user.id)
        if tenant is None:
            raise NotFoundError("No business found for this account", code="NO_TENANT")

        token = self.create_token(AuthPayload(user_id=user.id, role=user.role, tenant_id=tenant.id))
        return AuthResponse(token=token, user=UserSummary.from_user(user), tenant=TenantSummary.from_tenant(tenant))

    # Customers

    def register_customer(
        self,
        email: str | None,
        password: str | None,
        name: str | None = None,
        visitor_id: str | None = None,
    ) -> AuthResponse:
        """Create a customer account and claim the visitor's anonymous history."""
        if not email or not password:
            raise ValidationError("Email and password are required", code="MISSING_FIELDS")
        self._check_password_strength(password)

        if self.repos.users.find_by_email(email):
            raise ConflictError("Email already registered", code="EMAIL_EXISTS")

        user = self.repos.users.create(
            email=email,
            password_hash=self.hash_password(password),
            name=name,
            role="customer",
            fingerprint_id=visitor_id,
        )
        if visitor_id:
            linked = self.repos.customers.link_all_by_visitor_to_user(visitor_id, user.id)
            logger.info(f"Linked {linked} customer records of visitor {visitor_id} to user {user.id}")

        token = self.create_token(AuthPayload(user_id=user.id, role=user.role))
        return AuthResponse(token=token, user=UserSummary.from_user(user))

    def login_customer(self, email: str | None, password: str | None, visitor_id: str | None = None) -> AuthResponse:
        if not email or not password:
            raise ValidationError("Email and password are required", code="MISSING_CREDENTIALS")

        user = self.repos.users.find_by_email(email)
        if user is None or not user.password_hash:
            raise AuthError("Invalid credentials", code="INVALID_CREDENTIALS")
        if user.role != "customer":
            raise ForbiddenError("Access denied. Use owner login.", code="WRONG_LOGIN_TYPE")
        if not self.verify_password(password, user.password_hash):
            raise AuthError("Invalid credentials", code="INVALID_CREDENTIALS")

        if visitor_id:
            self.repos.customers.link_all_by_visitor_to_user(visitor_id, user.id)

        token = self.create_token(AuthPayload(user_id=user.id, role=user.role))
        return AuthResponse(token=token, user=UserSummary.from_user(user))

    def me(self, auth: AuthPayload) -> MeResponse:
        """Profile of the token holder."""
        user = self.repos.users.find_by_id(auth.user_id)
        if user is None:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")

        response = MeResponse(user=UserSummary.from_user(user))
        if auth.tenant_id:
            tenant = self.repos.tenants.find_by_id(auth.tenant_id)
            if tenant:
                response.tenant = TenantSummary.from_tenant(tenant, include_settings=True)
        if user.role == "customer":
            response.linked_tenants = len(self.repos.customers.find_by_user_id(user.id))
        return response

    def _check_password_strength(self, password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", code="WEAK_PASSWORD"
            )
