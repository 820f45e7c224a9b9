import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from app.routes import admin, deployments, public
from core.database import init_db
from core.errors import CameraAlertError, CycleInProgressError, ErrorKind
from worker.cycle import build_orchestrator

# Ensure .env values are loaded even if uvicorn is launched without `dotenv run`.
# Use override=True so editing `.env` (and restarting uvicorn) reliably takes effect even if
# older values exist in the environment from a previous shell/session.
load_dotenv(override=True)

log = logging.getLogger("app")

# Upstream failures (city page, geocoder, mail/push) are a bad gateway; our own DB is a 500.
_STATUS_BY_KIND = {
    ErrorKind.FETCH: 502,
    ErrorKind.GEOCODE: 502,
    ErrorKind.DISPATCH: 502,
    ErrorKind.PERSISTENCE: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    orchestrator = build_orchestrator()
    orchestrator.initialize()
    app.state.orchestrator = orchestrator
    yield


app = FastAPI(lifespan=lifespan)


app.include_router(public.router)
app.include_router(deployments.router)
app.include_router(admin.router)


@app.exception_handler(CycleInProgressError)
async def cycle_in_progress(request: Request, exc: CycleInProgressError):
    return JSONResponse({"error": str(exc)}, status_code=409)


@app.exception_handler(CameraAlertError)
async def camera_alert_error(request: Request, exc: CameraAlertError):
    log.error("Request failed", extra=exc.to_dict())
    return JSONResponse(exc.to_dict(), status_code=_STATUS_BY_KIND.get(exc.kind, 500))


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault(
        "Content-Security-Policy",
        "default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'; script-src 'self' 'unsafe-inline'; "
        "font-src 'self' data:; connect-src 'self';",
    )
    return response
