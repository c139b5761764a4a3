"""
API v1 router setup
Organized into: booking engine (availability, bookings, calendar) and admin routes
"""
from fastapi import APIRouter

from app.api.v1 import availability, bookings, calendar
from app.api.v1.admin import settings, staff, zones

api_v1_router = APIRouter()

# ============================================================================
# BOOKING ENGINE ROUTES
# ============================================================================
api_v1_router.include_router(
    availability.router,
    tags=["Availability"]
)

api_v1_router.include_router(
    bookings.router,
    tags=["Bookings"]
)

api_v1_router.include_router(
    calendar.router,
    tags=["Calendar"]
)

# ============================================================================
# ADMIN ROUTES (rules, staff, settings)
# ============================================================================
api_v1_router.include_router(
    zones.router,
    # No prefix needed - zones.router already has "/admin" prefix
    tags=["Admin"]
)

api_v1_router.include_router(
    staff.router,
    tags=["Admin"]
)

api_v1_router.include_router(
    settings.router,
    tags=["Admin"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoints."""
    return {
        "version": "1.0",
        "endpoints": {
            "availability": "GET /availability?from=&to=&staff_id=&zone=&mode=&only=",
            "book": "POST /book (Idempotency-Key header required)",
            "cancel": "DELETE /book/{id}",
            "validate": "POST /book/validate",
            "calendar": "GET /calendar/layout?date=&by_staff=",
            "admin": "/admin/zones, /admin/zone_rules, /admin/zone_exceptions, "
                     "/admin/staff, /admin/staff_zone_rules, /admin/zone_selections, /admin/settings",
        }
    }
