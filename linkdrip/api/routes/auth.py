from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, Field

from linkdrip.api.auth_utils import create_access_token, get_password_hash, verify_password
from linkdrip.api.deps import get_context, get_current_user
from linkdrip.app_shell.context import ServiceContext
from linkdrip.domain.entities import PlanName, User

router = APIRouter()


class Token(BaseModel):
    access_token: str
    token_type: str


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str
    first_name: str = ""
    last_name: str = ""
    plan: PlanName | None = None


def _user_info(user: User) -> dict[str, Any]:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "plan": user.plan,
        "splash_credits": user.splash_credits,
    }


def _issue_token(response: Response, user: User, ctx: ServiceContext) -> Token:
    ttl = ctx.rules.auth.token_ttl_minutes
    access_token = create_access_token(user.id, ttl_minutes=ttl)

    # HttpOnly cookie for browser clients, bearer token for everyone else
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=ttl * 60,
        expires=ttl * 60,
        samesite="lax",
        secure=False,  # Set to True behind HTTPS
    )
    return Token(access_token=access_token, token_type="bearer")


@router.post("/register", response_model=Token, status_code=201)
def register(
    data: RegisterRequest,
    response: Response,
    ctx: ServiceContext = Depends(get_context),
) -> Token:
    """Create an account and sign it in."""
    if len(data.password) < ctx.rules.auth.password_min_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {ctx.rules.auth.password_min_length} characters",
        )
    if ctx.user_repo.get_by_username(data.username):
        raise HTTPException(status_code=400, detail="Username already taken")
    if ctx.user_repo.get_by_email(data.email.lower()):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        username=data.username,
        email=data.email.lower(),
        first_name=data.first_name,
        last_name=data.last_name,
        password_hash=get_password_hash(data.password),
        plan=data.plan or ctx.rules.plans.default,
    )
    ctx.user_repo.save(user)
    return _issue_token(response, user, ctx)


@router.post("/login", response_model=Token)
async def login_for_access_token(
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    ctx: ServiceContext = Depends(get_context),
) -> Token:
    """Authenticate by email or username and return an access token."""
    login = form_data.username.strip()
    user = ctx.user_repo.get_by_email(login.lower()) or ctx.user_repo.get_by_username(login)
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status != "active":
        raise HTTPException(status_code=400, detail="User account is inactive")

    return _issue_token(response, user, ctx)


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key="access_token")
    return {"status": "success"}


@router.get("/me")
def read_users_me(
    current_user: User = Depends(get_current_user),
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    """Current user with plan limits and splash balance."""
    limits = ctx.plans.limits_for(current_user.plan)
    allowance_left, credits = ctx.matcher.remaining_splashes(current_user)
    info = _user_info(current_user)
    info["limits"] = {
        "websites": limits.websites,
        "drips_per_day": limits.drips_per_day,
        "splashes_per_month": limits.splashes_per_month,
    }
    info["splashes_remaining"] = allowance_left + credits
    return info
