"""Dependency injection for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Request

from unsubscribe_service.core.auth import require_manage_credentials
from unsubscribe_service.core.config import Settings
from unsubscribe_service.core.rate_limit import admit_request
from unsubscribe_service.services.unsubscribe_service import UnsubscribeWorkflow


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_workflow(request: Request) -> UnsubscribeWorkflow:
    """The process-wide workflow built by the app factory."""
    workflow: UnsubscribeWorkflow = request.app.state.workflow
    return workflow


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Workflow = Annotated[UnsubscribeWorkflow, Depends(get_workflow)]

__all__ = [
    "AppSettings",
    "Workflow",
    "admit_request",
    "get_app_settings",
    "get_workflow",
    "require_manage_credentials",
]
