"""
TextCollector — FastAPI Dependencies
=====================================

What:  Per-request access to the objects create_app() attached to app.state.
How:   Route handlers declare them with Depends(); tests can override them
       through app.dependency_overrides.
"""

from fastapi import Request

from textcollector.config import Settings
from textcollector.database import get_database, get_db_session
from textcollector.services.snippet_service import SnippetService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_snippet_service(request: Request) -> SnippetService:
    return request.app.state.snippet_service


__all__ = ["get_database", "get_db_session", "get_settings", "get_snippet_service"]
