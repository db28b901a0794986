from typing import Optional
import logging
from fastapi import APIRouter, Request, Response
from fastapi.responses import RedirectResponse
from managers.auth_manager import AdminTokenStore, fallback_token, verify_token
from models.auth import (
    AdminDashboardView,
    AdminItemView,
    AdminLoginPage,
    AdminLoginRequest,
    AdminLoginResponse,
    DashboardTab,
    status_badge_color,
)
from models.errors import BusinessError, FrontError
from repository import admin as admin_repo

router = APIRouter(prefix="/admin")
logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login"
DASHBOARD_PATH = "/admin/dashboard"

ITEM_KINDS = {
    "submission": "submissions",
    "order": "orders",
    "subscription": "subscriptions",
    "claim": "claims",
}


def to_login(store: AdminTokenStore, status_code: int = 302) -> RedirectResponse:
    response = RedirectResponse(LOGIN_PATH, status_code=status_code)
    store.clear(response)
    return response


@router.get("/login", response_model=AdminLoginPage, tags=["admin"])
async def login_page(request: Request, response: Response):
    store = AdminTokenStore(request)
    token = store.read()
    if token:
        if await verify_token(token):
            return RedirectResponse(DASHBOARD_PATH, status_code=302)
        store.clear(response)
    return AdminLoginPage()


@router.post("/login", response_model=AdminLoginResponse, tags=["admin"])
async def login(credentials: AdminLoginRequest, request: Request, response: Response):
    try:
        result = await admin_repo.admin_login(credentials)
    except FrontError as e:
        logger.error("Login error: %s", e.message)
        raise BusinessError("Login failed. Please try again.", status_code=e.status_code)
    if not result.success:
        raise BusinessError(result.error or "Login failed. Please try again.", status_code=401)

    token = result.token or fallback_token()
    if credentials.rememberMe:
        AdminTokenStore(request).write(response, token)
    logger.info("Admin %s logged in", credentials.username)
    return AdminLoginResponse(success=True, token=token, redirect=result.redirect or DASHBOARD_PATH)


async def authorized_token(store: AdminTokenStore) -> Optional[str]:
    token = store.read()
    if not token or not await verify_token(token):
        return None
    return token


async def load_dashboard(token: str):
    try:
        return await admin_repo.get_admin_dashboard_data(token)
    except BusinessError as e:
        if e.status_code in (401, 403):
            return None
        raise


@router.get("/dashboard", response_model=AdminDashboardView, tags=["admin"])
async def dashboard(request: Request, tab: DashboardTab = "submissions"):
    store = AdminTokenStore(request)
    token = await authorized_token(store)
    if token is None:
        return to_login(store)
    data = await load_dashboard(token)
    if data is None:
        return to_login(store)

    counts = {
        "submissions": len(data.submissions),
        "orders": len(data.orders),
        "subscriptions": len(data.subscriptions),
        "claims": len(data.claims),
    }
    statuses = {order.paymentStatus or "" for order in data.orders}
    statuses |= {order.status or "" for order in data.orders}
    statuses |= {subscription.status for subscription in data.subscriptions}
    statuses |= {claim.status or "" for claim in data.claims}
    colors = {status: status_badge_color(status) for status in statuses if status}
    return AdminDashboardView(activeTab=tab, data=data, counts=counts, statusColors=colors)


@router.get("/dashboard/{kind}/{item_id}", response_model=AdminItemView, tags=["admin"])
async def dashboard_item(kind: str, item_id: str, request: Request):
    if kind not in ITEM_KINDS:
        raise BusinessError(f"Unknown item type: {kind}", status_code=404)
    store = AdminTokenStore(request)
    token = await authorized_token(store)
    if token is None:
        return to_login(store)
    data = await load_dashboard(token)
    if data is None:
        return to_login(store)

    for item in getattr(data, ITEM_KINDS[kind]):
        dumped = item.model_dump(by_alias=True)
        keys = {str(dumped[key]) for key in ("_id", "id", "orderNumber") if dumped.get(key) is not None}
        if item_id in keys:
            return AdminItemView(type=kind, item=dumped)
    raise BusinessError(f"No {kind} found with id {item_id}", status_code=404)


@router.post("/logout", tags=["admin"])
async def logout(request: Request):
    return to_login(AdminTokenStore(request), status_code=303)
