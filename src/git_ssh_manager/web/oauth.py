"""OAuth code exchange endpoints and the provider redirect landing page."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates

from git_ssh_manager.api_models import CodeExchangeRequest
from git_ssh_manager.oauth import OAuthBridge

router = APIRouter(tags=["oauth"])

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
logger = logging.getLogger(__name__)


def get_oauth_bridge(request: Request) -> OAuthBridge:
    """Extract the shared :class:`OAuthBridge` from the FastAPI app state."""
    return request.app.state.oauth_bridge


@router.post("/api/github/exchange-code")
async def github_exchange_code(
    payload: CodeExchangeRequest,
    bridge: OAuthBridge = Depends(get_oauth_bridge),
):
    """Exchange a GitHub authorization code for an access token."""
    return await bridge.exchange_code("github", payload.code, payload.redirect_uri)


@router.post("/api/bitbucket/exchange-code")
async def bitbucket_exchange_code(
    payload: CodeExchangeRequest,
    bridge: OAuthBridge = Depends(get_oauth_bridge),
):
    """Exchange a Bitbucket authorization code for an access token."""
    return await bridge.exchange_code("bitbucket", payload.code, payload.redirect_uri)


@router.get("/git")
def oauth_callback(request: Request, code: str | None = None, error: str | None = None):
    """Landing page for the provider redirect.

    The page hands the code (or error) back to the window that opened the
    OAuth popup and closes itself.
    """
    logger.info(
        "OAuth callback received (code=%s, error=%s)",
        "present" if code else "missing",
        "present" if error else "missing",
    )
    return templates.TemplateResponse(
        request,
        "oauth_callback.html",
        {"code": code, "error": error},
    )
