"""Social platform connection endpoints: discovery, status and OAuth."""

from html import escape

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from social_publisher.api.deps import (
    AuthorizationServiceDep,
    ContainerDep,
    CredentialStoreDep,
)
from social_publisher.domain.enums import AuthorizationStatus, FailureReason, Platform
from social_publisher.domain.models import CallbackOutcome, UnsupportedPlatform, parse_platform
from social_publisher.logging import get_logger

router = APIRouter(tags=["Social Media"])
logger = get_logger(__name__)


class PlatformListResponse(BaseModel):
    """Configured platform ids in discovery order."""

    platforms: list[str]


class PlatformStatus(BaseModel):
    platform: str
    name: str
    configured: bool
    authorized: bool


class PlatformStatusResponse(BaseModel):
    platforms: list[PlatformStatus]


class AuthUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auth_url: str = Field(..., alias="authUrl")


@router.get(
    "/social-media/platforms",
    response_model=PlatformListResponse,
    summary="List configured platforms",
    description="Platforms that have app-level OAuth credentials configured.",
)
async def list_platforms(credentials: CredentialStoreDep) -> PlatformListResponse:
    return PlatformListResponse(platforms=credentials.list_configured_platforms())


@router.get(
    "/social-media/status",
    response_model=PlatformStatusResponse,
    summary="Platform connection status",
    description="Whether each platform is configured and has a connected account.",
)
async def platform_status(credentials: CredentialStoreDep) -> PlatformStatusResponse:
    return PlatformStatusResponse(
        platforms=[
            PlatformStatus(
                platform=p.value,
                name=p.display_name,
                configured=credentials.is_configured(p),
                authorized=credentials.is_authorized(p),
            )
            for p in Platform
        ]
    )


@router.get(
    "/social-media/auth-url/{platform}",
    response_model=AuthUrlResponse,
    response_model_by_alias=True,
    summary="Get authorization URL",
    description="Build the OAuth authorization URL for connecting a platform account.",
)
async def get_auth_url(
    platform: str,
    request: Request,
    container: ContainerDep,
    authorization: AuthorizationServiceDep,
) -> AuthUrlResponse:
    # Pick up credentials added to the environment since startup
    container.credentials.reload()

    origin = request.headers.get("host") or container.settings.default_caller_origin
    auth_url = authorization.get_authorization_url(platform, origin)

    if not auth_url:
        logger.warning("auth_url_unavailable", platform=platform, origin=origin)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Platform {platform} is not configured or not supported",
        )

    return AuthUrlResponse(auth_url=auth_url)


@router.get(
    "/auth/{platform}/callback",
    response_class=HTMLResponse,
    summary="OAuth callback",
    description="Completes an OAuth authorization and renders a page for the popup window.",
)
async def oauth_callback(
    platform: str,
    request: Request,
    authorization: AuthorizationServiceDep,
    code: str | None = None,
    error: str | None = None,
    state: str | None = None,
) -> HTMLResponse:
    outcome = await authorization.handle_callback(
        platform,
        code=code,
        error=error,
        state=state,
        caller_origin=request.headers.get("host"),
    )
    return render_callback_page(outcome)


def render_callback_page(outcome: CallbackOutcome) -> HTMLResponse:
    """Render the page shown in the OAuth popup after a callback."""
    parsed = parse_platform(outcome.platform)
    name = parsed.raw if isinstance(parsed, UnsupportedPlatform) else parsed.display_name

    if outcome.succeeded:
        title = f"{name} Connected"
        heading = f"{name} Successfully Connected!"
        body = "You may close this window and return to the application."
        status_code = status.HTTP_200_OK
        close_after_ms = 3000
    else:
        body = outcome.message
        close_after_ms = 5000
        if outcome.status == AuthorizationStatus.DENIED:
            title = heading = f"{name} Connection Failed"
            status_code = status.HTTP_400_BAD_REQUEST
        elif outcome.failure_reason in (
            FailureReason.INVALID_CALLBACK,
            FailureReason.UNSUPPORTED_PLATFORM,
        ):
            title = heading = "Invalid Request"
            status_code = status.HTTP_400_BAD_REQUEST
        else:
            title = heading = "Connection Error"
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    content = f"""<html>
  <head><title>{escape(title)}</title></head>
  <body>
    <h2>{escape(heading)}</h2>
    <p>{escape(body)}</p>
    <script>
      setTimeout(function() {{
        window.close();
      }}, {close_after_ms});
    </script>
  </body>
</html>
"""
    return HTMLResponse(content=content, status_code=status_code)
