from fastapi import APIRouter, Depends

from lending.api import deps
from lending.api.v1.routers import auth, clients, health, loans, payments, reports

protected = [Depends(deps.require_authenticated_user)]

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(clients.router, dependencies=protected)
api_router.include_router(loans.router, dependencies=protected)
api_router.include_router(payments.router, dependencies=protected)
api_router.include_router(reports.router, dependencies=protected)

__all__ = ["api_router"]
