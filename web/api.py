"""API route handlers for the BizBud site platform"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from bizbud.models.auth import CredentialKind, OperationClass, RequestCredentials
from bizbud.models.site import is_valid_site_id
from bizbud.utils.exceptions import (
    AuthorizationError,
    DeployError,
    ForbiddenError,
    InvalidInputError,
    InvalidOrExpiredTokenError,
    InvalidSiteIdError,
    NotFoundError,
    StoreUnavailableError,
    UnauthenticatedError,
    WrongTenantError,
)
from bizbud.utils.logger import get_logger, set_request_context

from .auth_deps import (
    SESSION_COOKIE,
    SITE_COOKIE,
    authorize_site,
    get_bearer_token,
    get_credentials,
    get_session_token,
    require_platform_admin,
)
from .deps import Services, get_services
from .models import (
    CreateSiteRequest,
    DeleteMediaRequest,
    DeleteSiteResponse,
    LoginRequest,
    LoginResponse,
    PaymentTierRequest,
    SaveClientDataRequest,
    SiteStatusResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["api"])
auth_router = APIRouter(prefix="/api", tags=["auth"])

LOGIN_FAILED = "Invalid site or password"


def _target_site(request: Request, site_id: Optional[str]) -> str:
    """siteId from the request, falling back to the siteId cookie"""
    site_id = site_id or request.cookies.get(SITE_COOKIE)
    if not site_id:
        raise HTTPException(status_code=400, detail="Site ID is required")
    if not is_valid_site_id(site_id):
        raise InvalidSiteIdError()
    set_request_context(site_id=site_id)
    return site_id


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@auth_router.post("/auth")
def login(login_data: LoginRequest, services: Services = Depends(get_services)):
    """Login to one site's admin with its password"""
    site_id = login_data.site_id.strip()
    if not site_id or not login_data.password:
        raise HTTPException(status_code=400, detail="Site ID and password are required")
    if not is_valid_site_id(site_id):
        raise HTTPException(status_code=401, detail=LOGIN_FAILED)

    try:
        valid = services.sessions.verify_password(site_id, login_data.password)
    except NotFoundError:
        valid = False
    if not valid:
        logger.info("Login failed", site_id=site_id)
        raise HTTPException(status_code=401, detail=LOGIN_FAILED)

    pair = services.sessions.create_session(site_id)
    settings = services.settings

    response = JSONResponse(LoginResponse(csrf_token=pair.csrf_token).model_dump(by_alias=True))
    cookie_args = dict(
        max_age=settings.auth.session_ttl_seconds,
        path="/",
        secure=settings.is_production,
        samesite="strict",
    )
    response.set_cookie(key=SESSION_COOKIE, value=pair.session_token, httponly=True, **cookie_args)
    # Readable by the admin app so it knows which site it is editing
    response.set_cookie(key=SITE_COOKIE, value=site_id, httponly=False, **cookie_args)

    logger.info("Login successful", site_id=site_id)
    return response


@auth_router.get("/validate-token")
def validate_token(
    request: Request,
    site_id: Optional[str] = Query(default=None, alias="siteId"),
    services: Services = Depends(get_services),
):
    """Check that the caller's session token is live and bound to siteId"""
    try:
        token = get_session_token(request) or get_bearer_token(request)
        if not token:
            raise UnauthenticatedError()

        target = _target_site(request, site_id)
        bound_site = services.sessions.resolve_session(token)
        if bound_site is None:
            raise InvalidOrExpiredTokenError()
        if bound_site != target:
            raise WrongTenantError("token bound to another site")
    except AuthorizationError as e:
        headers = {"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None
        return JSONResponse(status_code=e.status_code, content={"valid": False, "error": e.message}, headers=headers)
    return {"valid": True, "siteId": target}


@auth_router.post("/logout")
def logout(request: Request, services: Services = Depends(get_services)):
    """Logout and clear session"""
    try:
        services.sessions.revoke_session(get_session_token(request))
    except Exception as e:
        logger.exception("Logout error", error=str(e))

    response = JSONResponse({"success": True})
    response.delete_cookie(key=SESSION_COOKIE, path="/")
    response.delete_cookie(key=SITE_COOKIE, path="/")
    return response


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

@router.get("/client-data")
def get_client_data(
    request: Request,
    site_id: Optional[str] = Query(default=None, alias="siteId"),
    action: Optional[str] = Query(default=None),
    credentials: RequestCredentials = Depends(get_credentials),
    services: Services = Depends(get_services),
):
    """Site content; public for published sites, guarded for the admin dashboard"""
    target = _target_site(request, site_id)
    operation = services.classifier.read_operation(request.headers.get("referer"), action)
    authorize_site(services.guard, credentials, target, operation)
    return services.content.get_client_data(target)


@router.post("/client-data")
def save_client_data(
    request: Request,
    body: SaveClientDataRequest,
    credentials: RequestCredentials = Depends(get_credentials),
    services: Services = Depends(get_services),
):
    target = _target_site(request, body.site_id)
    authorize_site(services.guard, credentials, target, OperationClass.ADMIN_WRITE)
    if not body.client_data:
        raise HTTPException(status_code=400, detail="Client data is required")

    saved = services.content.save_client_data(target, body.client_data)
    return {"success": True, "lastUpdated": saved["lastUpdated"]}


@router.post("/payment-tier")
def update_payment_tier(
    body: PaymentTierRequest,
    credentials: RequestCredentials = Depends(get_credentials),
    services: Services = Depends(get_services),
):
    """Operator override of a site's tier; tenants upgrade through Stripe"""
    if not is_valid_site_id(body.site_id):
        raise InvalidSiteIdError()
    decision = authorize_site(services.guard, credentials, body.site_id, OperationClass.ADMIN_WRITE)
    if decision.via is not CredentialKind.PLATFORM_BEARER:
        raise ForbiddenError("payment tier requires the platform token")

    services.content.update_payment_tier(body.site_id, body.payment_tier)
    return {"success": True, "siteId": body.site_id, "paymentTier": body.payment_tier}


# ---------------------------------------------------------------------------
# Site directory (platform operator only)
# ---------------------------------------------------------------------------

@router.get("/sites", dependencies=[Depends(require_platform_admin)])
def list_sites(services: Services = Depends(get_services)):
    sites = services.directory.list_sites()
    return {"sites": [site.to_public() for site in sites]}


@router.post("/sites", dependencies=[Depends(require_platform_admin)])
def create_site(body: CreateSiteRequest, services: Services = Depends(get_services)):
    """Create a tenant from the template site and start its deployment"""
    record = services.lifecycle.create_site(
        site_id=body.site_id.strip(),
        business_name=body.business_name.strip(),
        business_type=body.business_type.strip(),
        password=body.password,
        admin_email=body.email.strip(),
    )
    return {"success": True, **record.model_dump(by_alias=True, exclude_none=True)}


@router.delete("/sites/{site_id}", dependencies=[Depends(require_platform_admin)])
def delete_site(site_id: str, services: Services = Depends(get_services)):
    result = services.lifecycle.delete_site(site_id)
    return DeleteSiteResponse(
        success=result.complete,
        site_id=result.site_id,
        deleted_keys=result.deleted_keys,
        failed_keys=result.failed_keys,
    ).model_dump(by_alias=True)


@router.get("/site-status")
def site_status(site_id: str = Query(default="", alias="siteId"), services: Services = Depends(get_services)):
    """Deployment status, polled by the create-site page"""
    if not site_id:
        raise HTTPException(status_code=400, detail="Site ID is required")
    try:
        status = services.lifecycle.deployment_status(site_id)
    except DeployError as e:
        logger.error("Deployment status unavailable", site_id=site_id, error=str(e))
        return JSONResponse(status_code=502, content={"status": "unknown", "error": e.public_message})
    return SiteStatusResponse(**status).model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------

@router.get("/media")
def list_media(
    request: Request,
    site_id: Optional[str] = Query(default=None, alias="siteId"),
    credentials: RequestCredentials = Depends(get_credentials),
    services: Services = Depends(get_services),
):
    target = _target_site(request, site_id)
    authorize_site(services.guard, credentials, target, OperationClass.ADMIN_READ)
    return {"media": services.require_media().list_media(target)}


@router.post("/media/upload")
def upload_media(
    request: Request,
    file: UploadFile = File(...),
    site_id: Optional[str] = Form(default=None, alias="siteId"),
    credentials: RequestCredentials = Depends(get_credentials),
    services: Services = Depends(get_services),
):
    target = _target_site(request, site_id)
    authorize_site(services.guard, credentials, target, OperationClass.ADMIN_WRITE)
    media = services.require_media()

    if not (file.content_type or "").startswith("image/"):
        raise InvalidInputError("Only image uploads are supported")

    item = media.upload(target, file.file, filename=file.filename)
    return {"success": True, **item.to_store()}


@router.post("/media/delete")
def delete_media(
    request: Request,
    body: DeleteMediaRequest,
    credentials: RequestCredentials = Depends(get_credentials),
    services: Services = Depends(get_services),
):
    target = _target_site(request, body.site_id)
    authorize_site(services.guard, credentials, target, OperationClass.ADMIN_WRITE)
    services.require_media().delete(target, body.public_id)
    return {"success": True}


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------

@router.post("/stripe-webhook")
async def stripe_webhook(request: Request, services: Services = Depends(get_services)):
    """Stripe events; authenticated by signature, not by session"""
    payload = await request.body()
    event = services.billing.verify_event(payload, request.headers.get("stripe-signature"))
    return await run_in_threadpool(services.billing.handle_event, event)


@router.get("/health")
def health(services: Services = Depends(get_services)):
    try:
        store_ok = services.store.ping()
    except StoreUnavailableError as e:
        logger.warning("Health check store ping failed", error=str(e))
        store_ok = False
    return {"status": "ok" if store_ok else "degraded", "store": "ok" if store_ok else "unavailable"}
