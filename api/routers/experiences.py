"""
Experience pages.

Served under /experiences/{experience_id}. TrustedHeaderMiddleware has
already run the auth gate for these paths, so handlers read the principal
from the trusted headers only.
"""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from api.pages import link, paragraph, render_error_page, render_page
from contracts.trusted_headers import read_trusted_context
from core.profiles import get_profile_service
from models.auth import AuthContext
from models.profile import Role

router = APIRouter(prefix="/experiences", tags=["pages"])


def _context(request: Request, experience_id: str) -> AuthContext | None:
    ctx = read_trusted_context(request.headers)
    if ctx is None or ctx.experience_id != experience_id:
        return None
    return ctx


@router.get("/{experience_id}", response_class=HTMLResponse)
async def landing_page(experience_id: str, request: Request):
    """Route the caller by profile state: welcome, continue draft or discovery."""
    ctx = _context(request, experience_id)
    if ctx is None:
        return render_error_page(401)

    status = await get_profile_service().check(ctx)
    if not status.success:
        return render_error_page(status.error.status)

    base = f"/experiences/{experience_id}"
    if not status.value.has_profile:
        return render_page(
            "Welcome to T.UP",
            paragraph("Let's get you set up with a profile to start matching.")
            + link(f"{base}/onboarding", "Get Started"),
        )

    if not status.value.is_complete:
        return render_page(
            "Welcome back",
            paragraph("Your profile is saved as a draft.")
            + link(f"{base}/profile/create?role={status.value.role.value}", "Continue your profile"),
        )

    return render_page(
        "Welcome back",
        paragraph(f"Signed in as {ctx.user_id} ({ctx.access_level.value}).")
        + link(f"{base}/discovery", "Go to discovery"),
    )


@router.get("/{experience_id}/onboarding", response_class=HTMLResponse)
async def onboarding_page(experience_id: str, request: Request):
    """Role selection."""
    if _context(request, experience_id) is None:
        return render_error_page(401)

    base = f"/experiences/{experience_id}/profile/create"
    return render_page(
        "Choose your role",
        paragraph("Are you raising or investing?")
        + link(f"{base}?role={Role.FOUNDER.value}", "I'm a founder")
        + link(f"{base}?role={Role.INVESTOR.value}", "I'm an investor"),
    )


@router.get("/{experience_id}/profile/create", response_class=HTMLResponse)
async def profile_create_page(experience_id: str, request: Request, role: str | None = None):
    """Profile form shell for the chosen role."""
    ctx = _context(request, experience_id)
    if ctx is None:
        return render_error_page(401)

    try:
        chosen = Role((role or "").upper())
    except ValueError:
        return render_page(
            "Invalid Role",
            paragraph("Please select a valid role to continue.")
            + link(f"/experiences/{experience_id}/onboarding", "Back to Role Selection"),
            status_code=400,
        )

    return render_page(
        f"Create your {chosen.value.lower()} profile",
        paragraph(
            f"Submit your profile to POST /api/profile/create with userId {ctx.user_id} "
            f"and experienceId {experience_id}."
        ),
    )


@router.get("/{experience_id}/discovery", response_class=HTMLResponse)
async def discovery_page(experience_id: str, request: Request, mode: str | None = None):
    """
    Discovery placeholder.

    Requires a profile unless ?mode=browse.
    """
    ctx = _context(request, experience_id)
    if ctx is None:
        return render_error_page(401)

    if mode != "browse":
        status = await get_profile_service().check(ctx)
        if not status.success:
            return render_error_page(status.error.status)
        if not status.value.has_profile:
            return render_page(
                "Profile Required",
                paragraph("Complete your profile to start discovering matches.")
                + link(f"/experiences/{experience_id}/onboarding", "Complete Profile"),
            )

    return render_page(
        "Discovery",
        paragraph("Matching is coming soon.")
        + link(f"/experiences/{experience_id}", "Back"),
    )
