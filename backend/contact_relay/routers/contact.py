from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from typing import Any
import logging

from contact_relay.core.settings import Settings
from contact_relay.dependencies import enforce_rate_limit, get_dispatcher, get_settings
from contact_relay.lib.dispatch import Dispatcher
from contact_relay.lib.validation import SpamSuppressed, validate_inquiry

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["contact"])

class ContactIn(BaseModel):
    email: Any = None
    message: Any = None
    name: Any = None
    website: Any = None  # honeypot, hidden from humans

@router.post("/contact", dependencies=[Depends(enforce_rate_limit)])
async def contact(
    payload: ContactIn,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    cfg: Settings = Depends(get_settings),
):
    try:
        inquiry = validate_inquiry(
            payload.model_dump(),
            email_max=cfg.email_max_length,
            message_max=cfg.message_max_length,
            name_max=cfg.name_max_length,
        )
    except SpamSuppressed:
        log.info("[contact] honeypot filled, dropping submission")
        return {"ok": True}

    # ValidationError / DeliveryError are turned into responses by main.py
    await run_in_threadpool(dispatcher.dispatch, inquiry)
    return {"ok": True}
