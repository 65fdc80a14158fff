"""
Auth endpoints — registration, login/logout, profile, password management.

Bodies and responses use camelCase keys.
"""

from fastapi import APIRouter, Depends, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.core.config import settings
from app.schemas.auth import (ChangePasswordRequest, DepartmentSummary,
                              ForgotPasswordRequest, ForgotPasswordResponse,
                              LoginRequest, LoginResponse, LoginUser,
                              MessageResponse, ProfileResponse,
                              RegisterRequest, RegisterResponse,
                              ResetDebugInfo, ResetPasswordRequest, RoleRead,
                              UserProfile)
from app.schemas.token import TokenClaims
from app.services import auth as auth_service
from app.services.notifications import ResetNotifier, get_reset_notifier

# Rate limiter keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])

_RESET_MESSAGE = "If your account exists, a password reset link will be sent to your email"


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """Create a login for an existing staff member."""
    user = await auth_service.register_user(
        db,
        staff_id=body.staff_id,
        username=body.username,
        password=body.password,
        default_role_id=body.default_role_id,
    )
    return RegisterResponse(message="User registered successfully", user_id=user.id)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Authenticate and open a session. The returned token names that session."""
    result = await auth_service.login(
        db,
        username=body.username,
        password=body.password,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    claims = result.claims
    return LoginResponse(
        message="Login successful",
        token=result.token,
        expires_at=result.session.expires_at,
        user=LoginUser(
            user_id=claims.user_id,
            staff_id=claims.staff_id,
            username=claims.username,
            full_name=claims.full_name,
            staff_role=claims.staff_role,
            roles=claims.roles,
        ),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_session),
) -> MessageResponse:
    """Revoke the caller's session; the token stops working immediately."""
    await auth_service.logout(db, claims, ip_address=_client_ip(request))
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=ProfileResponse)
async def read_current_user(
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_session),
) -> ProfileResponse:
    """Return profile, roles and department of the authenticated user."""
    profile = await auth_service.get_profile(db, claims.user_id)
    user, staff = profile.user, profile.staff
    department = (
        DepartmentSummary.model_validate(profile.department) if profile.department else None
    )
    return ProfileResponse(
        user=UserProfile(
            user_id=user.id,
            staff_id=staff.id,
            username=user.username,
            first_name=staff.first_name,
            last_name=staff.last_name,
            full_name=staff.full_name,
            email=staff.email,
            phone=staff.phone,
            staff_role=staff.role.value,
            is_active=user.is_active,
            last_login=user.last_login,
            roles=[RoleRead(id=r.id, name=r.name) for r in profile.roles],
            department=department,
        )
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_session),
) -> MessageResponse:
    await auth_service.change_password(
        db,
        user_id=claims.user_id,
        current_password=body.current_password,
        new_password=body.new_password,
        ip_address=_client_ip(request),
    )
    return MessageResponse(message="Password changed successfully")


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
@limiter.limit(settings.RESET_RATE_LIMIT)
async def forgot_password(
    request: Request,
    response: Response,
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    notifier: ResetNotifier = Depends(get_reset_notifier),
) -> ForgotPasswordResponse:
    """Start a password reset. Answers the same whether or not the user exists."""
    ticket = await auth_service.request_password_reset(
        db,
        username=body.username,
        notifier=notifier,
        ip_address=_client_ip(request),
    )
    result = ForgotPasswordResponse(message=_RESET_MESSAGE)
    if settings.PASSWORD_RESET_DEBUG_RESPONSE and ticket is not None:
        result.debug = ResetDebugInfo(reset_token=ticket.token, email=ticket.email)
    return result


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Consume a reset token, set the new password and sign out every session."""
    await auth_service.reset_password(
        db,
        token=body.token,
        new_password=body.new_password,
        ip_address=_client_ip(request),
    )
    return MessageResponse(message="Password has been reset successfully")
