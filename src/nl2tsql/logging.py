import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request

from .config import settings

logger = logging.getLogger("nl2tsql")

CORRELATION_HEADER = "x-correlation-id"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="-")


class CorrelationIdFilter(logging.Filter):
    """Stamp every record with the correlation id of the current request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get()
        return True


def setup_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(correlation_id)s] %(message)s",
        handlers=[handler],
    )

async def correlation_id_middleware(request: Request, call_next):
    cid = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
    request.state.correlation_id = cid
    token = _correlation_id.set(cid)
    start = time.perf_counter()
    try:
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = cid
        logger.info(
            "%s %s status=%d elapsed_ms=%.1f",
            request.method, request.url.path, response.status_code,
            (time.perf_counter() - start) * 1000
        )
        return response
    finally:
        _correlation_id.reset(token)
