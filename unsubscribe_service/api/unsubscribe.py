"""Unsubscribe endpoints: link click, confirmation page and confirmation submit."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from unsubscribe_service.core.deps import Workflow, admit_request, require_manage_credentials
from unsubscribe_service.schemas.common import ErrorResponse

router = APIRouter(
    dependencies=[Depends(require_manage_credentials)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
    },
)


@router.get(
    "",
    dependencies=[Depends(admit_request)],
    responses={429: {"model": ErrorResponse}},
)
async def unsubscribe(
    workflow: Workflow,
    id: str = Query("", description="Email address (firstname.lastname@gmail.com)"),
    html_template: str = Query("", alias="htmlTemplate", description="Template UUID"),
    t: str = Query("", description="Timestamp the link was issued at"),
) -> RedirectResponse:
    """User clicks the unsubscribe link.

    Validates the email and link timestamp, issues a short-lived token and
    redirects to the confirmation page.
    """
    result = workflow.initiate(id, html_template, t)
    return RedirectResponse(result.redirect_url, status_code=status.HTTP_302_FOUND)


@router.get("/confirm")
async def confirm(
    workflow: Workflow,
    token: str = Query(""),
    html_template: str | None = Query(None, alias="htmlTemplate"),
) -> Response:
    """Show the confirmation prompt for a pending unsubscribe.

    Repeatable; does not consume the token. With ``htmlTemplate`` the prompt is
    the rendered template (the default one if the id is unknown).
    """
    result = workflow.confirm_view(token)
    if html_template is not None:
        return HTMLResponse(workflow.render_confirmation(token, result.email, html_template))
    return PlainTextResponse(result.prompt)


@router.post("/confirm")
async def confirm_unsubscribe(
    workflow: Workflow,
    token: str = Query(""),
) -> RedirectResponse:
    """Confirm the unsubscribe: remove the address and notify."""
    result = await workflow.confirm_commit(token)
    return RedirectResponse(result.redirect_url, status_code=status.HTTP_302_FOUND)
