from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel
from .error import ClientError, ServerError
from .middleware.route_guard import RouteGuardMiddleware
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    message = "Internal server error"
    if exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        message = "Service temporarily unavailable"
    error_dict = {"code": exc.base_error.code, "message": message}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_store_error(request: Request, exc: SQLAlchemyError):
    logger.error(f"Store error on {request.url.path}: {exc!r}")
    error_dict = {"code": "STORE_UNAVAILABLE", "message": "Service temporarily unavailable"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"error": error_dict}
    )


def create_app(ApplicationConfig, uow_scope=None) -> FastAPI:
    from src.depends import engine, unit_of_work_scope

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ApplicationConfig.DB_AUTO_CREATE:
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("Database tables created")
        yield

    app = FastAPI(title="Authorization API", version="0.1.0", lifespan=lifespan)
    app.state.uow_scope = uow_scope or unit_of_work_scope

    app.add_middleware(RouteGuardMiddleware, config=ApplicationConfig)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import admin, audit, health_check, invitation, permissions, roles

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(permissions.router, tags=["Permissions"])
    app.include_router(invitation.router, tags=["Invitations"])
    app.include_router(roles.router, tags=["Roles"])
    app.include_router(admin.router, tags=["Admin"])
    app.include_router(audit.router, tags=["Audit"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(SQLAlchemyError, handle_store_error)

    return app
