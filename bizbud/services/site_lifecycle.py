"""
Site lifecycle: create and delete tenants.

Creation writes settings and content first; provisioning on the deploy
platform is best-effort afterwards. A failed provisioning step never rolls
back the stored site, it only flags the record for manual follow-up.
"""

from typing import Dict, Optional

from ..api.deploy_client import DeployPlatform
from ..auth.sessions import SessionManager
from ..models.site import (
    DeletionResult,
    SiteRecord,
    SiteSettings,
    content_key,
    is_valid_site_id,
    settings_key,
    site_keys,
    status_key,
    utc_now_iso,
)
from ..store.base import KeyValueStore
from ..utils.exceptions import (
    AlreadyExistsError,
    DeployError,
    ForbiddenError,
    InvalidInputError,
    InvalidSiteIdError,
    NotFoundError,
    StoreUnavailableError,
    TemplateMissingError,
    WeakPasswordError,
)
from ..utils.logger import get_logger
from .site_directory import SiteDirectory

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
PROTECTED_SITE_IDS = frozenset({"entry-nets", "coastal-breeze"})
DEFAULT_TEMPLATE_SITE_ID = "coastal-breeze"


class SiteLifecycleManager:
    """Creates and destroys tenants"""

    def __init__(
        self,
        store: KeyValueStore,
        sessions: SessionManager,
        directory: SiteDirectory,
        deployer: Optional[DeployPlatform] = None,
        template_site_id: str = DEFAULT_TEMPLATE_SITE_ID,
        protected_site_ids=PROTECTED_SITE_IDS,
        deploy_env: Optional[Dict[str, str]] = None,
    ):
        self.store = store
        self.sessions = sessions
        self.directory = directory
        self.deployer = deployer
        self.template_site_id = template_site_id
        self.protected_site_ids = frozenset(protected_site_ids)
        self.deploy_env = deploy_env or {}

    def create_site(
        self,
        site_id: str,
        business_name: str,
        business_type: str,
        password: str,
        admin_email: str = "",
    ) -> SiteRecord:
        """
        Create a new tenant from the template site.

        Raises:
            InvalidSiteIdError, WeakPasswordError, InvalidInputError: before any write
            AlreadyExistsError: content already stored for site_id
            TemplateMissingError: template site has no content
            StoreUnavailableError: store unreachable
        """
        if not is_valid_site_id(site_id):
            raise InvalidSiteIdError()
        if not business_name:
            raise InvalidInputError("businessName is required")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError()

        if self.directory.site_exists(site_id):
            raise AlreadyExistsError(f"Site {site_id} exists")

        template = self.store.get(content_key(self.template_site_id))
        if not isinstance(template, dict):
            raise TemplateMissingError(f"{self.template_site_id} template missing")

        settings = SiteSettings(
            admin_password_hash=self.sessions.hash_password(password),
            admin_email=admin_email or "",
            business_type=business_type or "",
        )
        content = {**template, "siteTitle": business_name, "businessType": business_type or ""}
        # Billing state belongs to the template's own subscription, never copied
        for field in ("subscriptionId", "stripeCustomerId"):
            content.pop(field, None)
        content["paymentTier"] = "FREE"

        # SET NX on the content key claims the siteId; settings are written only by the winner
        if not self.store.set(content_key(site_id), content, nx=True):
            raise AlreadyExistsError(f"Site {site_id} exists")
        self.store.set(settings_key(site_id), settings.to_store())
        logger.info("Tenant stored", site_id=site_id)

        record = SiteRecord(
            site_id=site_id,
            business_name=business_name,
            url=self._site_url(site_id),
            admin_url=f"{self._site_url(site_id)}/admin",
        )
        return self._provision(record)

    def _site_url(self, site_id: str) -> str:
        if self.deployer is not None:
            return self.deployer.site_url(site_id)
        return f"https://{site_id}.vercel.app"

    def _provision(self, record: SiteRecord) -> SiteRecord:
        site_id = record.site_id
        if self.deployer is None:
            return self._mark_pending(record, "Deploy platform not configured")

        try:
            env = {**self.deploy_env, "VITE_SITE_ID": site_id}
            project_id = self.deployer.create_project(site_id, env)
            record.project_id = project_id
            self.deployer.trigger_deployment(project_id, site_id)
        except DeployError as e:
            logger.error("Provisioning failed, site kept", site_id=site_id, error=str(e))
            return self._mark_pending(record, str(e))
        except Exception as e:
            logger.exception("Unexpected provisioning error, site kept", site_id=site_id, error=str(e))
            return self._mark_pending(record, "Deployment needs manual follow-up")

        self._write_status(site_id, {"state": "provisioning", "projectId": record.project_id})
        return record

    def _mark_pending(self, record: SiteRecord, reason: str) -> SiteRecord:
        record.deployment_pending = True
        record.deployment_error = reason
        self._write_status(record.site_id, {"state": "provisioning_failed", "message": reason})
        return record

    def _write_status(self, site_id: str, status: Dict) -> None:
        try:
            self.store.set(status_key(site_id), {**status, "updatedAt": utc_now_iso()})
        except StoreUnavailableError as e:
            # status is advisory; the site itself is already stored
            logger.error("Failed to write provisioning status", site_id=site_id, error=str(e))

    def delete_site(self, site_id: str) -> DeletionResult:
        """
        Delete every key owned by a site.

        Each key is deleted independently; failures are collected in
        ``failed_keys`` instead of aborting the rest.

        Raises:
            ForbiddenError: protected site (store never touched)
            NotFoundError: no content record
        """
        if site_id in self.protected_site_ids:
            raise ForbiddenError(f"Cannot delete protected site {site_id}")
        if not is_valid_site_id(site_id):
            raise InvalidSiteIdError()

        if not self.directory.site_exists(site_id):
            raise NotFoundError(f"Site {site_id} not found")

        logger.info("Deleting site", site_id=site_id)
        result = DeletionResult(site_id=site_id)
        for key in site_keys(site_id):
            try:
                self.store.delete(key)
                result.deleted_keys.append(key)
            except StoreUnavailableError as e:
                logger.error("Failed to delete site key", site_id=site_id, key=key, error=str(e))
                result.failed_keys.append(key)

        if result.complete:
            logger.info("Site deleted", site_id=site_id)
        else:
            logger.warning("Site partially deleted", site_id=site_id, failed_keys=result.failed_keys)
        return result

    def deployment_status(self, site_id: str) -> Dict:
        """
        ``{status: building|ready|error|unknown, url?, adminUrl?, deployedAt?, message?}``

        A stored provisioning failure wins over the platform's view.

        Raises:
            DeployError: the deploy platform could not be queried
        """
        if not is_valid_site_id(site_id):
            raise InvalidSiteIdError()

        stored = self.store.get(status_key(site_id))
        if isinstance(stored, dict) and stored.get("state") == "provisioning_failed":
            return {"status": "error", "message": stored.get("message")}

        if self.deployer is None:
            return {"status": "unknown"}

        result = self.deployer.get_deployment_status(site_id)
        status = {"status": result.get("state", "unknown")}
        if status["status"] == "ready":
            url = result.get("url") or self._site_url(site_id)
            status.update({"url": url, "adminUrl": f"{url}/admin", "deployedAt": result.get("deployedAt")})
        return status
