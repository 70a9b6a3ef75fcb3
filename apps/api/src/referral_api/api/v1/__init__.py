from fastapi import APIRouter

from .endpoints import balances, health, observability, purchases

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(balances.router)
router.include_router(purchases.router)
router.include_router(observability.router)
