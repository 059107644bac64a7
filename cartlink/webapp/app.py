"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..tools import ShoppingTools
from .routes import router


def create_app(tools: ShoppingTools | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    shopping = tools or ShoppingTools()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Close adapter HTTP clients on shutdown."""
        yield
        await shopping.aclose()

    app = FastAPI(
        title="cartlink",
        description="Search and manage carts across supported grocery retailers",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store tools reference
    app.state.tools = shopping

    app.include_router(router)

    return app
