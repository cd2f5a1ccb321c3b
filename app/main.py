# app/main.py
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.subscribe import router as subscribe_router
from app.core.config import settings
from app.core.errors import WaitlistError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === STARTUP ===
    if not settings.sheet_id:
        logger.warning("GOOGLE_SHEETS_SHEET_ID is not set; /api/subscribe will answer 500")
    yield


app = FastAPI(title="Entru waitlist", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(WaitlistError)
async def waitlist_error_handler(request: Request, exc: WaitlistError):
    # Los fallos ya se registran donde ocurren
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


@app.exception_handler(StarletteHTTPException)
async def starlette_http_error_handler(request: Request, exc: StarletteHTTPException):
    # Verbos fuera de la ruta (TRACE, CONNECT...) los corta el router antes del endpoint
    if exc.status_code == 405:
        return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers=exc.headers)
    return await http_exception_handler(request, exc)


app.include_router(subscribe_router, prefix="/api", tags=["subscribe"])


@app.get("/")
def root():
    return {"ok": True}
