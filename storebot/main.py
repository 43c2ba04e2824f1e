import logging

from fastapi import FastAPI

from storebot.api.v1.cache import router as cache_router
from storebot.api.v1.chat import router as chat_router
from storebot.api.v1.debug import router as debug_router
from storebot.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("request_id", "store_id", "function", "tab", "cache", "language", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Storebot Chat Orchestrator", version="1.0.0")

app.include_router(chat_router, prefix="/api/v1", tags=["chat"])
app.include_router(debug_router, prefix="/api/v1", tags=["debug"])
app.include_router(cache_router, prefix="/api/v1", tags=["cache"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
