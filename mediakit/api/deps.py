from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from mediakit.core.auth import AuthContext, get_auth_context
from mediakit.core.config import Settings, get_settings
from mediakit.services.avatar_service import AvatarService
from mediakit.services.container import ServiceContainer
from mediakit.services.ingest_service import IngestService, MediaLookupService


def get_container(request: Request) -> ServiceContainer:
    container: ServiceContainer = request.app.state.container
    return container


def get_app_settings() -> Settings:
    return get_settings()


def get_ingest_service(container: ServiceContainer = Depends(get_container)) -> IngestService:
    return container.ingest


def get_lookup_service(container: ServiceContainer = Depends(get_container)) -> MediaLookupService:
    return container.lookup


def get_avatar_service(container: ServiceContainer = Depends(get_container)) -> AvatarService:
    return container.avatars


IngestDependency = Annotated[IngestService, Depends(get_ingest_service)]
LookupDependency = Annotated[MediaLookupService, Depends(get_lookup_service)]
AvatarDependency = Annotated[AvatarService, Depends(get_avatar_service)]
AuthDependency = Annotated[AuthContext, Depends(get_auth_context)]


__all__ = [
    "get_container",
    "get_app_settings",
    "get_ingest_service",
    "get_lookup_service",
    "get_avatar_service",
    "IngestDependency",
    "LookupDependency",
    "AvatarDependency",
    "AuthDependency",
]
