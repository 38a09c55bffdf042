import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from talenthr.core.config import settings
from talenthr.core.database import rollback_inserted, transaction
from talenthr.core.security import create_token_pair, get_password_hash, verify_password, verify_token
from talenthr.models.company import Company
from talenthr.models.users import User
from talenthr.schemas.users import LoginRequest, SignupRequest
from talenthr.services import company_service, employee_service, invitation_service, otp_service

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def set_auth_cookies(response: Response, user: User) -> None:
    access_token, refresh_token = create_token_pair(user)
    cookie_opts = {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": "lax", "path": "/"}
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.ACCESS_TOKEN_EXPIRE_SECONDS, **cookie_opts)
    response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=settings.REFRESH_TOKEN_EXPIRE_SECONDS, **cookie_opts)


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
        )
    return parts[1]


async def _load_active_user(user_id: Optional[str]) -> User:
    user = await User.get(user_id) if user_id else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Your account is not active")
    return user


async def get_current_user_dependency(request: Request, response: Response) -> User:
    """
    Resolve the caller from the access cookie (or a Bearer header).

    An expired access token is silently replaced: if the refresh cookie is
    still valid both cookies are reissued on the outgoing response.
    """
    token = request.cookies.get(ACCESS_COOKIE) or _bearer_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    payload = verify_token(token, "access")
    if payload is not None:
        return await _load_active_user(payload.get("sub"))

    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if not refresh_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired. Please login again.")
    refresh_payload = verify_token(refresh_token, "refresh")
    if refresh_payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired. Please login again.")

    user = await _load_active_user(refresh_payload.get("sub"))
    set_auth_cookies(response, user)
    return user


async def get_optional_user(request: Request, response: Response) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of a 401"""
    if not request.cookies.get(ACCESS_COOKIE) and not request.headers.get("Authorization"):
        return None
    try:
        return await get_current_user_dependency(request, response)
    except HTTPException as exc:
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            return None
        raise


def serialize_user(user: User, company: Optional[Company] = None) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "status": user.status,
        "company_id": str(user.company_id) if user.company_id else None,
        "company": company_service.company_summary(company),
        "last_login": user.last_login,
        "created_at": user.created_at,
    }


class AuthRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/auth", tags=["authentication"])
        self.setup_routes()

    def setup_routes(self):
        self.router.add_api_route("/signup", self.signup, methods=["POST"], status_code=201)
        self.router.add_api_route("/login", self.login, methods=["POST"])
        self.router.add_api_route("/refresh", self.refresh_token, methods=["POST"])
        self.router.add_api_route("/logout", self.logout, methods=["POST"])
        self.router.add_api_route("/me", self.get_current_user, methods=["GET"])

    async def signup(self, payload: SignupRequest, response: Response):
        if payload.role == "company_admin" and payload.company_name:
            return await self._company_admin_signup(payload, response)
        if payload.token:
            return await self._invitation_signup(payload, response)
        raise HTTPException(
            status_code=400,
            detail="Invalid signup request. Provide company_name for admin signup or token for invitation signup.",
        )

    async def _company_admin_signup(self, payload: SignupRequest, response: Response):
        otp = await otp_service.latest_verification(payload.email, "company_admin_signup")
        if not otp:
            raise HTTPException(status_code=400, detail="Email not verified. Please verify your email with OTP first.")
        if not otp_service.within_signup_window(otp):
            raise HTTPException(status_code=400, detail="OTP verification expired. Please verify your email again.")

        if await User.find_one(User.email == payload.email):
            raise HTTPException(status_code=409, detail="User with this email already exists")
        if await company_service.company_name_taken(payload.company_name):
            raise HTTPException(
                status_code=409,
                detail="A company with this name already exists. Please choose a different name.",
            )

        company = Company(name=payload.company_name, slug=await company_service.unique_slug(payload.company_name))
        user = User(
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            name=payload.name,
            role="company_admin",
        )
        inserted = []
        async with transaction() as session:
            try:
                await company.insert(session=session)
                inserted.append(company)
                user.company_id = company.id
                await user.insert(session=session)
                inserted.append(user)
                employee = await employee_service.create_employee_record(
                    company, user, {"position": "Company Administrator"}, session=session
                )
                inserted.append(employee)
                inserted.extend(await company_service.seed_departments(company.id, session=session))
                inserted.extend(await company_service.seed_leave_types(company.id, session=session))
            except Exception:
                if session is None:
                    await rollback_inserted(inserted)
                raise

        logger.info("Company %s created by %s", company.slug, user.email)
        set_auth_cookies(response, user)
        return {
            "success": True,
            "message": "Company and account created successfully",
            "user": serialize_user(user, company),
            "employee_id": employee.employee_id,
        }

    async def _invitation_signup(self, payload: SignupRequest, response: Response):
        invitation = await invitation_service.find_by_token(payload.token)
        if not invitation or invitation.status != "pending":
            raise HTTPException(status_code=400, detail="Invalid or expired invitation link")
        await invitation_service.mark_expired(invitation)
        if invitation.status == "expired":
            raise HTTPException(status_code=400, detail="Invitation link has expired")
        if invitation.email != payload.email:
            raise HTTPException(status_code=400, detail="Email does not match invitation")
        if await User.find_one(User.email == payload.email):
            raise HTTPException(status_code=409, detail="User with this email already exists")

        user = User(
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            name=payload.name,
            role=invitation.role,
            company_id=invitation.company_id,
        )
        async with transaction() as session:
            await user.insert(session=session)
            invitation.status = "accepted"
            invitation.accepted_at = datetime.utcnow()
            invitation.accepted_by = user.id
            try:
                await invitation.save(session=session)
            except Exception:
                if session is None:
                    await rollback_inserted([user])
                raise

        company = await Company.get(invitation.company_id)
        set_auth_cookies(response, user)
        return {
            "success": True,
            "message": "Account created successfully",
            "user": serialize_user(user, company),
        }

    async def login(self, payload: LoginRequest, response: Response):
        invalid = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email, password, or role")
        user = await User.find_one(User.email == payload.email)
        if not user or user.role != payload.role:
            raise invalid
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Your account is not active. Please contact your administrator.",
            )
        if not verify_password(payload.password, user.hashed_password):
            raise invalid

        company = await Company.get(user.company_id) if user.company_id else None
        if not company:
            raise HTTPException(status_code=404, detail="Company not found")
        if company.status != "active":
            raise HTTPException(status_code=403, detail="Company account is suspended. Please contact support.")

        user.last_login = datetime.utcnow()
        await user.save()
        set_auth_cookies(response, user)
        return {"success": True, "message": "Login successful", "user": serialize_user(user, company)}

    async def refresh_token(self, request: Request, response: Response):
        token = request.cookies.get(REFRESH_COOKIE)
        if not token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token required")
        payload = verify_token(token, "refresh")
        if payload is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired refresh token")
        user = await _load_active_user(payload.get("sub"))
        set_auth_cookies(response, user)
        return {"success": True, "message": "Tokens refreshed"}

    async def logout(self, response: Response):
        clear_auth_cookies(response)
        return {"success": True, "message": "Logged out successfully"}

    async def get_current_user(self, current_user: User = Depends(get_current_user_dependency)):
        company = await Company.get(current_user.company_id) if current_user.company_id else None
        employee = await employee_service.employee_for_user(current_user)
        data = serialize_user(current_user, company)
        data["employee_id"] = str(employee.id) if employee else None
        return {"success": True, "user": data}


auth_router = AuthRouter().router

# exported for the other routers
get_current_user = get_current_user_dependency
