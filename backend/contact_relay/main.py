# contact_relay/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from contact_relay.core.body_limit import BodySizeLimitMiddleware
from contact_relay.core.mailer import DeliveryError, SMTPTransport
from contact_relay.core.ratelimit import build_rate_limiter
from contact_relay.core.settings import settings
from contact_relay.lib.validation import ValidationError
from contact_relay.routers.contact import router as contact_router
from contact_relay.routers.health import router as health_router

log = logging.getLogger("uvicorn.error")

MAIL_SEND_FAILED = "Mail send failed."


@asynccontextmanager
async def lifespan(app: FastAPI):
    transport = SMTPTransport.from_settings(settings)
    app.state.transport = transport
    if not transport.configured:
        log.warning("[main] MAIL_USER / MAIL_PASS not set; contact submissions will fail")
    else:
        try:
            await run_in_threadpool(transport.open)
        except DeliveryError as exc:
            log.warning(f"[main] SMTP not reachable at startup: {exc}")
    log.info(f"[main] allowed origins = {settings.allowed_origins() or '(same-origin only)'}")
    try:
        yield
    finally:
        await run_in_threadpool(transport.close)


app = FastAPI(title=settings.api_title, lifespan=lifespan)
app.state.rate_limiter = build_rate_limiter(settings)


app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=86400,
)


def origin_allowed(origin: str, request: Request) -> bool:
    if origin in settings.allowed_origins():
        return True
    return origin == f"{request.url.scheme}://{request.url.netloc}"


@app.middleware("http")
async def reject_foreign_origins(request: Request, call_next):
    origin = request.headers.get("origin")
    if origin and not origin_allowed(origin, request):
        log.info(f"[cors] rejected origin {origin} for {request.url.path}")
        return JSONResponse(status_code=403, content={"ok": False, "error": "Not allowed by CORS"})
    return await call_next(request)


@app.exception_handler(ValidationError)
async def on_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"ok": False, "error": str(exc)})


@app.exception_handler(RequestValidationError)
async def on_bad_body(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"ok": False, "error": "Invalid request body."})


@app.exception_handler(DeliveryError)
async def on_delivery_error(request: Request, exc: DeliveryError):
    log.error(f"[contact] mail send error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"ok": False, "error": MAIL_SEND_FAILED})


@app.exception_handler(StarletteHTTPException)
async def on_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Routers
app.include_router(contact_router)
app.include_router(health_router)


@app.get("/", include_in_schema=False)
async def root():
    return PlainTextResponse("Not found.", status_code=404)
