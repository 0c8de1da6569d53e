# leadflow/routes/__init__.py
"""
API route handlers organized by domain.
"""

from leadflow.routes.balance import router as balance_router
from leadflow.routes.dashboard import router as dashboard_router
from leadflow.routes.expenses import router as expenses_router
from leadflow.routes.health import router as health_router
from leadflow.routes.landings import router as landings_router
from leadflow.routes.leads import router as leads_router
from leadflow.routes.public import router as public_router

__all__ = [
    "balance_router",
    "dashboard_router",
    "expenses_router",
    "health_router",
    "landings_router",
    "leads_router",
    "public_router",
]
