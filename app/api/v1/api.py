"""API v1 router composition."""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, customers, orders, rewards

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(rewards.router, prefix="/rewards", tags=["rewards"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
