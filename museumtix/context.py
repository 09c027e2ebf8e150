"""Per-application state shared by request handlers."""

from dataclasses import dataclass

from fastapi import Request

from museumtix.config import Settings
from museumtix.storage.interfaces import IStorage


@dataclass
class AppContext:
    settings: Settings
    storage: IStorage


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_storage(request: Request) -> IStorage:
    """Storage dependency for route handlers"""
    return request.app.state.context.storage


def get_app_settings(request: Request) -> Settings:
    return request.app.state.context.settings
