import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.http.health import router as health_router
from app.api.http.users import router as users_router
from app.api.http.documents import router as documents_router
from app.api.http.notifications import router as notifications_router
from app.core.config import settings
from app.core.errors import DocCollabError
from app.core.logging import setup_logging

logger = logging.getLogger(__name__)


async def doccollab_error_handler(request: Request, exc: DocCollabError) -> JSONResponse:
    """Ошибки домена отдаются как {kind, message} без внутренних деталей"""
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message} {exc.context}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "message": exc.message},
        headers=headers
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"kind": "invalid_argument", "message": f"{location}: {message}" if location else message}
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"kind": "internal", "message": "Internal server error"}
    )


def create_app() -> FastAPI:
    setup_logging(settings.log_level)

    app = FastAPI(
        title="DocCollab",
        description="Сервис документов: упоминания, совместный доступ и история версий",
        version="1.0.0"
    )

    # Настройка CORS для работы с frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # В продакшене указать конкретные домены
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DocCollabError, doccollab_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Подключаем роутеры
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(documents_router)
    app.include_router(notifications_router)

    @app.get("/")
    async def root():
        """Корневой эндпоинт"""
        return {
            "message": "DocCollab API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()
