"""Deploy platform (Vercel) client"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.config import DeploySettings
from ..utils.exceptions import DeployError
from ..utils.logger import get_logger

logger = get_logger(__name__)

ENV_TARGETS = ["production", "preview", "development"]

STATE_BUILDING = "building"
STATE_READY = "ready"
STATE_ERROR = "error"


class DeployPlatform(ABC):
    """What the site lifecycle needs from a hosting platform"""

    @abstractmethod
    def create_project(self, site_id: str, env_vars: Dict[str, str]) -> str:
        """Create a project for the site from the template; returns project id"""

    @abstractmethod
    def trigger_deployment(self, project_id: str, site_id: str) -> str:
        """Start a production build; returns deployment id"""

    @abstractmethod
    def get_deployment_status(self, site_id: str) -> Dict[str, Any]:
        """Latest production deployment as {state, url?, deployedAt?}"""

    def site_url(self, site_id: str) -> str:
        return f"https://{site_id}.vercel.app"


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return True
    if isinstance(exc, DeployError):
        return exc.upstream_status is not None and (exc.upstream_status >= 500 or exc.upstream_status == 429)
    return False


class VercelClient(DeployPlatform):
    """
    Thin wrapper over the Vercel REST API.

    Every request carries an explicit timeout; transport errors, 429 and
    5xx responses are retried with exponential backoff before surfacing as
    DeployError.
    """

    def __init__(self, settings: DeploySettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.base_url = settings.api_base_url.rstrip("/")
        self.timeout = settings.timeout_seconds
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.settings.api_token)

    def site_url(self, site_id: str) -> str:
        return f"https://{site_id}.{self.settings.site_domain}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        response = self.session.request(
            method=method,
            url=f"{self.base_url}/{endpoint.lstrip('/')}",
            params=params,
            json=json,
            headers={
                "Authorization": f"Bearer {self.settings.api_token}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                message = response.text
            raise DeployError(
                f"Vercel {method} {endpoint} failed ({response.status_code}): {message}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            return {}

    def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """
        Make a request to the Vercel API.

        Raises:
            DeployError: not configured, HTTP error or transport failure after retries
        """
        if not self.configured:
            raise DeployError("Missing Vercel token")
        try:
            logger.info("Vercel API request", method=method, endpoint=endpoint)
            return self._send(method, endpoint, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error("Vercel request failed", endpoint=endpoint, error=str(e))
            raise DeployError(f"Vercel request failed: {e}") from e

    def create_project(self, site_id: str, env_vars: Dict[str, str]) -> str:
        data = self._request(
            "POST",
            "/v11/projects",
            json={
                "name": site_id,
                "framework": self.settings.framework,
                "gitRepository": {"type": "github", "repo": self.settings.template_repo},
            },
        )
        project_id = data.get("id")
        if not project_id:
            raise DeployError("Vercel did not return a project id")
        logger.info("Vercel project created", site_id=site_id, project_id=project_id)

        for key, value in env_vars.items():
            self._request(
                "POST",
                f"/v10/projects/{project_id}/env",
                params={"upsert": "true"},
                json={
                    "key": key,
                    "value": value,
                    "type": "encrypted" if "TOKEN" in key or "URL" in key else "plain",
                    "target": ENV_TARGETS,
                },
            )
        logger.info("Vercel env vars added", site_id=site_id, count=len(env_vars))
        return project_id

    def trigger_deployment(self, project_id: str, site_id: str) -> str:
        org, _, repo = self.settings.template_repo.partition("/")
        data = self._request(
            "POST",
            "/v13/deployments",
            json={
                "name": site_id,
                "project": project_id,
                "target": "production",
                "gitSource": {"type": "github", "org": org, "repo": repo, "ref": "main"},
            },
        )
        # Unlink so the project stands alone after the first build
        self._request("PATCH", f"/v10/projects/{project_id}", json={"gitRepository": None})
        deployment_id = data.get("id") or ""
        logger.info("Vercel deployment triggered", site_id=site_id, deployment_id=deployment_id)
        return deployment_id

    def get_deployment_status(self, site_id: str) -> Dict[str, Any]:
        data = self._request(
            "GET",
            "/v6/deployments",
            params={"app": site_id, "target": "production", "limit": 1},
        )
        deployments: List[Dict[str, Any]] = data.get("deployments") or []
        if not deployments:
            return {"state": STATE_BUILDING}

        deployment = deployments[0]
        state = (deployment.get("state") or deployment.get("readyState") or "").upper()
        if state == "READY":
            return {
                "state": STATE_READY,
                "url": self.site_url(site_id),
                "deployedAt": deployment.get("created"),
            }
        if state in ("ERROR", "CANCELED"):
            return {"state": STATE_ERROR}
        return {"state": STATE_BUILDING}
