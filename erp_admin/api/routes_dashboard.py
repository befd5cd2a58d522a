from fastapi import APIRouter, Request

from erp_admin.api.deps import render
from erp_admin.navigation import DASHBOARD_TRAIL, use_breadcrumbs

router = APIRouter(tags=["dashboard"])

DASHBOARD_CARDS = [
    {"title": "Products", "description": "Manage your product catalog and inventory", "action": "View Products", "href": "/products"},
    {"title": "Orders", "description": "Track and manage all orders", "action": "View Orders", "href": None},
    {"title": "Point of Sale", "description": "Process retail transactions", "action": "Open POS", "href": None},
    {"title": "Inventory", "description": "Monitor stock levels and movements", "action": "View Inventory", "href": None},
    {"title": "Reports", "description": "Analyze sales and inventory data", "action": "View Reports", "href": None},
    {"title": "Settings", "description": "Configure system preferences", "action": "Open Settings", "href": None},
]


@router.get("/", summary="Landing dashboard")
def dashboard(request: Request):
    use_breadcrumbs(request).set_breadcrumbs(DASHBOARD_TRAIL)
    return render(request, "dashboard.html", {"cards": DASHBOARD_CARDS})
