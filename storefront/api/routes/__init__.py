"""API route registration."""

from fastapi import FastAPI

from storefront.api.routes import (
    admin_categories,
    admin_products,
    admin_settings,
    catalog,
    pwa,
    site,
    system,
)


def include_api_routes(app: FastAPI) -> None:
    """Attach all API routers to the application."""

    app.include_router(system.router)
    app.include_router(catalog.router)
    app.include_router(site.router)
    app.include_router(admin_products.router)
    app.include_router(admin_categories.router)
    app.include_router(admin_settings.router)
    app.include_router(pwa.router)
