"""FastAPI dependencies resolving components built in create_app."""

from fastapi import Request

from fragments.config import Settings
from fragments.services.fragment_service import FragmentService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_fragment_service(request: Request) -> FragmentService:
    return request.app.state.fragment_service
