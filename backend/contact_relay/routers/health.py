# contact_relay/routers/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
import logging

from contact_relay.core.mailer import DeliveryError, SMTPTransport
from contact_relay.dependencies import get_transport

log = logging.getLogger("uvicorn.error")

router = APIRouter(tags=["health"])

@router.get("/api/health")
@router.get("/health")
async def health(transport: SMTPTransport = Depends(get_transport)):
    try:
        await run_in_threadpool(transport.verify)
    except DeliveryError as exc:
        log.warning(f"[health] transport check failed: {exc}")
        return JSONResponse(status_code=503, content={"ok": False, "error": "Mail transport unavailable."})
    return {"ok": True}
