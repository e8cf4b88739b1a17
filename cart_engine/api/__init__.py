# cart_engine/api/__init__.py
from fastapi import FastAPI

from cart_engine.api.routers import carts, health, orders


def create_app() -> FastAPI:
    app = FastAPI(
        title="Cart Service",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app
