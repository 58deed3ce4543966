from __future__ import annotations

from fastapi import FastAPI

from cad_doctree.api.handlers import install_exception_handlers
from cad_doctree.api.lifespan import lifespan
from cad_doctree.api.middleware import RequestLogMiddleware
from cad_doctree.api.routes.assembly import router as assembly_router
from cad_doctree.api.routes.drawings import router as drawings_router
from cad_doctree.api.routes.files import router as files_router
from cad_doctree.api.routes.health import router as health_router
from cad_doctree.api.routes.properties import router as properties_router
from cad_doctree.api.routes.rename import router as rename_router
from cad_doctree.api.routes.root import router as root_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="CAD Doctree API",
        description="Rename CAD document trees and repair their references.",
        version="0.1.0",
        lifespan=lifespan,
    )

    install_exception_handlers(app)
    app.add_middleware(RequestLogMiddleware)

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    app.include_router(assembly_router)
    app.include_router(properties_router)
    app.include_router(rename_router)
    app.include_router(drawings_router)
    app.include_router(files_router)

    return app
