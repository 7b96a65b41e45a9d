import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("access")

REQUEST_ID_HEADER = "X-Request-Id"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log for every HTTP request, tagged with a request id"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        client = request.client.host if request.client else "unknown"

        logger.info(f"🌐 [{request_id}] {request.method} {request.url.path} - Client: {client}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"✅ [{request_id}] {request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        response.headers["X-Process-Time"] = str(process_time)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
