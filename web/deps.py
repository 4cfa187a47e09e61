"""
Service wiring for the web layer.

Everything the routes need hangs off one ``Services`` container built from
settings on first use. Tests swap it with
``app.dependency_overrides[get_services]``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import Depends

from bizbud.api.deploy_client import DeployPlatform, VercelClient
from bizbud.auth import PasswordHasher, RequestClassifier, SessionManager, TenantGuard
from bizbud.services import (
    BillingService,
    ContentService,
    MediaHost,
    MediaService,
    SiteDirectory,
    SiteLifecycleManager,
)
from bizbud.services.content_service import DEFAULT_FALLBACK_PATH
from bizbud.store import KeyValueStore, create_store
from bizbud.utils.config import Settings, config_manager
from bizbud.utils.exceptions import IntegrationUnavailableError
from bizbud.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    store: KeyValueStore
    sessions: SessionManager
    guard: TenantGuard
    classifier: RequestClassifier
    directory: SiteDirectory
    lifecycle: SiteLifecycleManager
    content: ContentService
    billing: BillingService
    media: Optional[MediaService] = None
    deployer: Optional[DeployPlatform] = None

    def require_media(self) -> MediaService:
        if self.media is None:
            raise IntegrationUnavailableError("Image service not configured")
        return self.media


def build_services(
    settings: Settings,
    store: Optional[KeyValueStore] = None,
    deployer: Optional[DeployPlatform] = None,
    media_host: Optional[MediaHost] = None,
    hasher: Optional[PasswordHasher] = None,
) -> Services:
    """Assemble the service graph; explicit arguments win over settings"""
    store = store or create_store(settings.store)
    sessions = SessionManager(
        store,
        hasher=hasher or PasswordHasher(rounds=settings.auth.bcrypt_rounds),
        ttl_seconds=settings.auth.session_ttl_seconds,
    )
    directory = SiteDirectory(store)

    if deployer is None:
        client = VercelClient(settings.deploy)
        if client.configured:
            deployer = client
        else:
            logger.warning("VERCEL_API_TOKEN not set, new sites will need manual deployment")

    if media_host is None and settings.media.configured:
        from .cloudinary_helper import CloudinaryMediaHost
        media_host = CloudinaryMediaHost(settings.media)

    deploy_env = {"KV_URL": settings.store.url} if settings.store.url else {}
    fallback_path = settings.sites.fallback_content_path or DEFAULT_FALLBACK_PATH

    return Services(
        settings=settings,
        store=store,
        sessions=sessions,
        guard=TenantGuard(sessions, platform_token=settings.auth.platform_admin_token),
        classifier=RequestClassifier(settings.auth.admin_path_prefix),
        directory=directory,
        lifecycle=SiteLifecycleManager(
            store,
            sessions,
            directory,
            deployer=deployer,
            template_site_id=settings.sites.template_site_id,
            protected_site_ids=settings.auth.protected_site_ids,
            deploy_env=deploy_env,
        ),
        content=ContentService(store, fallback_path=Path(fallback_path)),
        billing=BillingService(store, directory, settings.billing.stripe_webhook_secret),
        media=MediaService(store, media_host, folder=settings.media.folder) if media_host else None,
        deployer=deployer,
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services(config_manager.settings)
    return _services


def get_guard(services: Services = Depends(get_services)) -> TenantGuard:
    return services.guard
