import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from museumtix.analytics import router as analytics_router
from museumtix.auth import router as auth_router
from museumtix.chat import router as chat_router
from museumtix.config import Settings, get_settings
from museumtix.context import AppContext
from museumtix.errors import NOT_FOUND_CODES, DomainError
from museumtix.exhibitions import router as exhibitions_router
from museumtix.payments import router as payments_router
from museumtix.storage import create_storage
from museumtix.storage.interfaces import IStorage
from museumtix.testimonials import router as testimonials_router
from museumtix.ticket_types import router as ticket_types_router
from museumtix.tickets import router as tickets_router
from museumtix.users import router as users_router

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )


def format_validation_error(exc: RequestValidationError) -> str:
    """One readable line per failing field, e.g. 'Required at "quantity"'"""
    parts = []
    for error in exc.errors():
        location = [str(item) for item in error.get("loc", ()) if item not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        if location:
            message = f'{message} at "{".".join(location)}"'
        parts.append(message)
    return "Validation error: " + "; ".join(parts)


def create_app(settings: Optional[Settings] = None, storage: Optional[IStorage] = None) -> FastAPI:
    """Build the API. A storage passed in is used as-is and never closed by the app."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_storage = storage is None
        active_storage = storage if storage is not None else create_storage(settings)
        app.state.context = AppContext(settings=settings, storage=active_storage)
        logger.info("%s started with %s", settings.PROJECT_NAME, type(active_storage).__name__)
        yield
        if owns_storage:
            active_storage.close()
            logger.info("Storage closed")
    
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Museum ticket booking API",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    
    # Available before startup too, for clients built without the lifespan
    if storage is not None:
        app.state.context = AppContext(settings=settings, storage=storage)
    
    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith(settings.API_PREFIX):
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.info("%s %s %s in %dms", request.method, request.url.path, response.status_code, duration_ms)
        return response
    
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": format_validation_error(exc)}
        )
    
    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        if exc.code in NOT_FOUND_CODES:
            status_code = status.HTTP_404_NOT_FOUND
        else:
            status_code = status.HTTP_400_BAD_REQUEST
        return JSONResponse(status_code=status_code, content={"detail": exc.message})
    
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"}
        )
    
    # Include routers
    prefix = settings.API_PREFIX
    app.include_router(auth_router.router, prefix=prefix, tags=["Authentication"])
    app.include_router(users_router.router, prefix=f"{prefix}/users", tags=["Users"])
    app.include_router(exhibitions_router.router, prefix=f"{prefix}/exhibitions", tags=["Exhibitions"])
    app.include_router(ticket_types_router.router, prefix=f"{prefix}/ticket-types", tags=["Ticket Types"])
    app.include_router(tickets_router.router, prefix=f"{prefix}/tickets", tags=["Tickets"])
    app.include_router(payments_router.router, prefix=f"{prefix}/payments", tags=["Payments"])
    app.include_router(chat_router.router, prefix=f"{prefix}/chat", tags=["Chatbot"])
    app.include_router(testimonials_router.router, prefix=f"{prefix}/testimonials", tags=["Testimonials"])
    app.include_router(analytics_router.router, prefix=f"{prefix}/analytics", tags=["Analytics"])
    
    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "version": "1.0.0",
            "docs": "/docs"
        }
    
    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": settings.ENVIRONMENT}
    
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
