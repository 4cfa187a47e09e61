"""
Configuration management with schema validation.
Single source of truth for BizBud settings, loaded from environment (.env).
"""

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .exceptions import ConfigError

# Load environment variables
load_dotenv()


class StoreSettings(BaseModel):
    backend: str = Field(default="redis", pattern="^(redis|memory)$")
    url: Optional[str] = None
    socket_timeout: float = 5.0


class AuthSettings(BaseModel):
    session_ttl_seconds: int = 24 * 60 * 60
    bcrypt_rounds: int = Field(default=12, ge=4)
    admin_path_prefix: str = "/admin"
    platform_admin_token: Optional[str] = None
    protected_site_ids: List[str] = Field(default_factory=lambda: ["entry-nets", "coastal-breeze"])


class SitesSettings(BaseModel):
    template_site_id: str = "coastal-breeze"
    fallback_content_path: Optional[str] = None


class DeploySettings(BaseModel):
    api_base_url: str = "https://api.vercel.com"
    api_token: Optional[str] = None
    template_repo: str = "ssc456/bizbud-template-site"
    framework: str = "vite"
    timeout_seconds: float = 20.0
    site_domain: str = "vercel.app"


class MediaSettings(BaseModel):
    cloud_name: Optional[str] = None
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    folder: str = "bizbud"

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


class BillingSettings(BaseModel):
    stripe_webhook_secret: Optional[str] = None


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    environment: str = "development"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    store: StoreSettings = Field(default_factory=StoreSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    sites: SitesSettings = Field(default_factory=SitesSettings)
    deploy: DeploySettings = Field(default_factory=DeploySettings)
    media: MediaSettings = Field(default_factory=MediaSettings)
    billing: BillingSettings = Field(default_factory=BillingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def load_settings() -> Settings:
    """Build Settings from environment variables"""
    try:
        cors = _env("CORS_ORIGINS")
        return Settings(
            environment=(_env("ENVIRONMENT", "development") or "development").lower(),
            cors_origins=[o.strip() for o in cors.split(",") if o.strip()] if cors else ["*"],
            store=StoreSettings(
                backend=(_env("STORE_BACKEND", "redis") or "redis").lower(),
                url=_env("REDIS_URL") or _env("KV_URL"),
                socket_timeout=float(_env("REDIS_SOCKET_TIMEOUT", "5")),
            ),
            auth=AuthSettings(
                session_ttl_seconds=int(_env("SESSION_TTL_SECONDS", str(24 * 60 * 60))),
                bcrypt_rounds=int(_env("BCRYPT_ROUNDS", "12")),
                admin_path_prefix=_env("ADMIN_PATH_PREFIX", "/admin"),
                platform_admin_token=_env("PLATFORM_ADMIN_TOKEN"),
            ),
            sites=SitesSettings(
                template_site_id=_env("TEMPLATE_SITE_ID", "coastal-breeze"),
                fallback_content_path=_env("FALLBACK_CONTENT_PATH"),
            ),
            deploy=DeploySettings(
                api_token=_env("VERCEL_API_TOKEN"),
                template_repo=_env("DEPLOY_TEMPLATE_REPO", "ssc456/bizbud-template-site"),
                timeout_seconds=float(_env("DEPLOY_TIMEOUT_SECONDS", "20")),
            ),
            media=MediaSettings(
                cloud_name=_env("CLOUDINARY_CLOUD_NAME"),
                api_key=_env("CLOUDINARY_API_KEY"),
                api_secret=_env("CLOUDINARY_API_SECRET"),
                folder=_env("MEDIA_FOLDER", "bizbud"),
            ),
            billing=BillingSettings(
                stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET"),
            ),
            logging=LoggingSettings(
                level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
                format=(_env("LOG_FORMAT", "json") or "json").lower(),
            ),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


class ConfigManager:
    """Singleton configuration manager"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._settings: Optional[Settings] = None
        self._initialized = True

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    def override(self, settings: Settings) -> None:
        """Replace the cached settings (tests, embedding)"""
        self._settings = settings

    def reload(self) -> Settings:
        self._settings = load_settings()
        return self._settings


# Global instance
config_manager = ConfigManager()
