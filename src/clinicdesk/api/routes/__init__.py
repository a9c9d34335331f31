"""
API Routes
"""

from clinicdesk.api.routes.appointments import router as appointments_router
from clinicdesk.api.routes.payments import router as payments_router

__all__ = [
    "appointments_router",
    "payments_router",
]
