import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from portal.config import get_settings
from portal.database import engine, init_models
from portal.exceptions import PortalError
from portal.logging_config import configure_logging
from portal.routers import auth as auth_router
from portal.routers import entries, patients

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: logging, then tables
    configure_logging(get_settings().log_level)
    await init_models(engine)
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="Patient Records Portal",
    description="Patient and doctor registration, login and health records",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Health records must never be cached by the browser."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


app.add_middleware(NoCacheMiddleware)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    logger.warning("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})


app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
app.include_router(patients.router, prefix="/api/patients", tags=["Patients"])
app.include_router(entries.router, prefix="/api/entries", tags=["Today Entries"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "patient-records-portal"}
