import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from linkdrip.api.auth_utils import decode_access_token
from linkdrip.app_shell.context import ServiceContext
from linkdrip.components.analyzer import WebsiteAnalyzer
from linkdrip.components.crawler import CrawlerService
from linkdrip.components.discovery import DiscoveryScheduler
from linkdrip.components.maintenance import MaintenanceService
from linkdrip.components.matching import OpportunityMatcher
from linkdrip.components.outreach import OutreachService
from linkdrip.components.validation import ValidationPipeline
from linkdrip.domain.entities import User
from linkdrip.rules.loader import load_rules
from linkdrip.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("LINKDRIP_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "linkdrip.db")
        self.rules_path = Path(
            os.environ.get("LINKDRIP_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = self.base_dir / "migrations"
        self.openpagerank_api_key = os.environ.get("OPENPAGERANK_API_KEY")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Service context ---
# One context per process: the discovery scheduler's run lock must be shared.
_context_instance: ServiceContext | None = None


def get_context() -> ServiceContext:
    """Get service context singleton."""
    global _context_instance
    if _context_instance is None:
        settings = get_settings()
        _context_instance = ServiceContext.create(
            settings.db_path,
            load_rules(settings.rules_path),
            settings.openpagerank_api_key,
        )
    return _context_instance


def reset_context() -> None:
    global _context_instance
    _context_instance = None


def get_rules(ctx: ServiceContext = Depends(get_context)) -> Rules:
    return ctx.rules


# --- Component Services ---
def get_crawler_service(ctx: ServiceContext = Depends(get_context)) -> CrawlerService:
    return ctx.crawler


def get_validation_pipeline(ctx: ServiceContext = Depends(get_context)) -> ValidationPipeline:
    return ctx.validator


def get_website_analyzer(ctx: ServiceContext = Depends(get_context)) -> WebsiteAnalyzer:
    return ctx.analyzer


def get_matcher(ctx: ServiceContext = Depends(get_context)) -> OpportunityMatcher:
    return ctx.matcher


def get_discovery_scheduler(ctx: ServiceContext = Depends(get_context)) -> DiscoveryScheduler:
    return ctx.discovery


def get_maintenance_service(ctx: ServiceContext = Depends(get_context)) -> MaintenanceService:
    return ctx.maintenance


def get_outreach_service(ctx: ServiceContext = Depends(get_context)) -> OutreachService:
    return ctx.outreach


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    ctx: ServiceContext = Depends(get_context),
) -> User:
    # Cookie (HttpOnly) wins over the Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None or not isinstance(user_id, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user = ctx.user_repo.get_by_id(UUID(user_id))
    except ValueError:
        user = None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )

    return user


def error_detail(errors: tuple | list) -> list[dict[str, str | None]]:
    """Component validation errors as an HTTP error body."""
    return [{"code": e.code, "message": e.message, "field": e.field} for e in errors]
