# contact_relay/dependencies.py
from fastapi import Depends, HTTPException, Request, Response
import logging

from contact_relay.core.mailer import SMTPTransport
from contact_relay.core.ratelimit import RateLimiter
from contact_relay.core.settings import Settings, settings
from contact_relay.lib.dispatch import Dispatcher
from contact_relay.lib.templates import Branding

log = logging.getLogger("uvicorn.error")

RATE_LIMITED = "Too many requests, please try again later."


def get_settings() -> Settings:
    return settings


def get_transport(request: Request) -> SMTPTransport:
    transport = getattr(request.app.state, "transport", None)
    if transport is None:
        # lifespan did not run (e.g. app mounted without startup); build once
        transport = SMTPTransport.from_settings(settings)
        request.app.state.transport = transport
    return transport


def get_dispatcher(
    transport: SMTPTransport = Depends(get_transport),
    cfg: Settings = Depends(get_settings),
) -> Dispatcher:
    return Dispatcher(
        transport,
        sender_address=cfg.mail_user,
        sender_name=cfg.from_name,
        recipient=cfg.recipient,
        branding=Branding(brand_name=cfg.from_name, site_url=cfg.site_url),
        auto_reply=cfg.auto_reply,
    )


def client_key(request: Request, cfg: Settings) -> str:
    if cfg.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(
    request: Request,
    response: Response,
    cfg: Settings = Depends(get_settings),
) -> None:
    limiter: RateLimiter = request.app.state.rate_limiter
    key = client_key(request, cfg)
    state = limiter.hit(key)
    headers = {
        "RateLimit-Limit": str(state.limit),
        "RateLimit-Remaining": str(state.remaining),
        "RateLimit-Reset": str(state.reset_seconds),
    }
    if not state.allowed:
        log.warning(f"[ratelimit] {key} exceeded {state.limit} requests per window")
        headers["Retry-After"] = str(state.reset_seconds)
        raise HTTPException(status_code=429, detail=RATE_LIMITED, headers=headers)
    response.headers.update(headers)
