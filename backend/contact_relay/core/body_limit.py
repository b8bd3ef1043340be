from fastapi import HTTPException
from fastapi.responses import JSONResponse

TOO_LARGE = "Request body too large."


class BodySizeLimitMiddleware:
    """Caps request bodies at ``max_bytes``.

    A declared Content-Length over the cap is refused up front. Bodies without
    one (chunked uploads) are counted as they stream in; crossing the cap
    raises a 413 HTTPException from inside the body read, which the app's
    exception handlers turn into the usual JSON envelope.
    """

    def __init__(self, app, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = dict(scope.get("headers") or []).get(b"content-length", b"")
        if length.isdigit() and int(length) > self.max_bytes:
            response = JSONResponse(status_code=413, content={"ok": False, "error": TOO_LARGE})
            await response(scope, receive, send)
            return

        received = 0

        async def counting_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise HTTPException(status_code=413, detail=TOO_LARGE)
            return message

        await self.app(scope, counting_receive, send)
