import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import SessionLocal, init_db
from app.scheduler import VisitorSweepScheduler
from app.utils.exceptions import AppError, StorageError

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables for development databases
    if settings.AUTO_CREATE_TABLES:
        init_db()
        logger.info("Database tables ensured (AUTO_CREATE_TABLES).")

    # Startup: visitor expiry sweep
    sweeper = None
    if settings.VISITOR_SWEEP_ENABLED:
        sweeper = VisitorSweepScheduler(
            SessionLocal,
            interval_hours=settings.VISITOR_SWEEP_INTERVAL_HOURS,
            timezone=settings.TIMEZONE,
        )
        sweeper.start()
    app.state.visitor_sweeper = sweeper

    yield

    if sweeper is not None:
        sweeper.shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errores = [
        {
            "campo": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "mensaje": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.info("Rejected %s %s: %s", request.method, request.url.path, errores)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Faltan datos requeridos", "errores": errores},
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Unhandled storage error on %s %s", request.method, request.url.path, exc_info=exc
    )
    error = StorageError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

# Scans and access history
from app.routers import accesos  # noqa: E402

app.include_router(accesos.router, prefix=settings.API_PREFIX, tags=["Accesos"])

# Person directory and visitors
from app.routers import personas  # noqa: E402

app.include_router(personas.router, prefix=settings.API_PREFIX, tags=["Personas"])

# Accounts
from app.routers import auth  # noqa: E402

app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["Auth"])
