"""
Request context
Startup-built environment plus the per-request view handed to controllers
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from fastapi import Request

from cms.config import Settings
from cms.services.email_service import EmailService
from cms.services.folder_cache import FolderCache
from cms.services.r2_storage import R2Storage

@dataclass(frozen=True)
class Environment:
    """Storage handles and configuration, built once at startup"""
    db: Any
    settings: Settings
    mailer: EmailService
    controllers: "ControllerRegistry"  # noqa: F821
    files: Optional[R2Storage] = None

    @property
    def folder_cache(self) -> FolderCache:
        return FolderCache(self.db)

@dataclass(frozen=True)
class RequestContext:
    """
    Everything a handler or controller may need about one request

    `user` is the authenticated email or None; `body` is the decoded JSON
    body, or None when the request was not JSON (the raw stream stays
    readable from `request`).
    """
    environment: Environment
    request: Request
    headers: Mapping[str, str]
    queries: Mapping[str, str]
    user: Optional[str] = None
    body: Any = None
    client: Optional[str] = field(default=None, repr=False)

    @property
    def db(self):
        return self.environment.db

    @property
    def settings(self) -> Settings:
        return self.environment.settings
