import uvicorn

from contact_relay.core.settings import settings

if __name__ == "__main__":
    uvicorn.run("contact_relay.main:app", host="0.0.0.0", port=settings.port)
