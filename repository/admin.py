import logging
from managers.backend_manager import BackendConnectionManager, parse_response
from models.auth import AdminDashboardData, AdminLoginRequest, AdminLoginResponse, AdminTokenVerification

logger = logging.getLogger(__name__)


async def admin_login(credentials: AdminLoginRequest) -> AdminLoginResponse:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/admin/login", json=credentials.model_dump())
    return parse_response(AdminLoginResponse, data)


async def verify_admin_token(token: str) -> AdminTokenVerification:
    manager = BackendConnectionManager()
    data = await manager.request("POST", "/admin/verify-token", json={"token": token})
    return parse_response(AdminTokenVerification, data)


async def get_admin_dashboard_data(token: str) -> AdminDashboardData:
    manager = BackendConnectionManager()
    data = await manager.request("GET", "/admin/dashboard", token=token) or {}
    dashboard = parse_response(
        AdminDashboardData,
        {
            "submissions": data.get("submissions") or [],
            "orders": data.get("orders") or [],
            "subscriptions": data.get("subscriptions") or [],
            "claims": data.get("claims") or [],
            "ordersMap": data.get("ordersMap") or {},
        },
    )
    logger.info(
        "Admin dashboard response: submissions=%d orders=%d subscriptions=%d claims=%d",
        len(dashboard.submissions),
        len(dashboard.orders),
        len(dashboard.subscriptions),
        len(dashboard.claims),
    )
    return dashboard
