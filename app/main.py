import json
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import logging_settings
from app.routers import id_cards

# OCR transcripts carry student personal data
REDACTED_KEYS = {"text", "transcript"}
RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class CustomFormatter(logging.Formatter):
    """Text or JSON log lines; fields passed via ``extra`` are appended."""

    def __init__(self, use_json: bool = False, **kwargs: Any):
        super().__init__(**kwargs)
        self.use_json = use_json

    def extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            key: ("***" if key in REDACTED_KEYS else value)
            for key, value in record.__dict__.items()
            if key not in RESERVED_ATTRS
        }

    def format(self, record: logging.LogRecord) -> str:
        extra = self.extra_fields(record)

        if self.use_json:
            payload = {
                "timestamp": self.formatTime(record),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                **extra,
            }
            if record.exc_info:
                payload["exception"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        base = super().format(record)
        if not extra:
            return base
        return base + " | " + " ".join(f"{key}={value}" for key, value in extra.items())


def setup_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(
        CustomFormatter(
            use_json=logging_settings.LOG_FORMAT == "json",
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging_settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    yield


app = FastAPI(title="Student ID Card Registration Service", lifespan=lifespan)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each ID card API call with its upload size and duration."""

    logger = logging.getLogger("http")

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(id_cards.router.prefix):
            return await call_next(request)

        start_time = time.monotonic()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "content_length": request.headers.get("content-length"),
        }
        try:
            response = await call_next(request)
        except Exception:
            fields["duration_ms"] = round((time.monotonic() - start_time) * 1000, 2)
            self.logger.error("ID card request failed", exc_info=True, extra=fields)
            if logging_settings.ENV == "dev":
                raise
            return Response(content="Internal server error", status_code=500)

        fields["status"] = response.status_code
        fields["duration_ms"] = round((time.monotonic() - start_time) * 1000, 2)
        self.logger.info("ID card request completed", extra=fields)
        return response


app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(id_cards.router)


@app.get("/health", status_code=status.HTTP_200_OK)
def health() -> dict[str, str]:
    return {"status": "healthy"}


@app.get("/", status_code=status.HTTP_200_OK)
def test() -> dict[str, Any]:
    return {"success": True, "service": "id-card-registration"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
