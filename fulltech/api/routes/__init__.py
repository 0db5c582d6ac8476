from fastapi import APIRouter

from fulltech.api.routes import admin, auth, customer, health, notifications, products, raffle

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(customer.router, prefix="/customer", tags=["customer"])
api_router.include_router(raffle.router, prefix="/raffle", tags=["raffle"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
