import time
from typing import Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from stackr.core.logging import get_logger, latency_bucket_ms, request_id_ctx_var


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request_id for the duration of a request and echo it back."""

    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        response.headers[self.header_name] = rid
        self._log_completion(request, rid, response.status_code, (time.perf_counter() - started) * 1000)
        return response

    @staticmethod
    def _log_completion(request: Request, rid: str, status: Optional[int], latency_ms: float) -> None:
        fields = {
            "request_id": rid,
            "path": request.url.path,
            "method": request.method,
            "status": status,
            "latency_bucket": latency_bucket_ms(latency_ms),
        }
        # read routes name the acting user in the query string
        user_id = request.query_params.get("user_id")
        if user_id:
            fields["user_id"] = user_id
        logger = get_logger()
        if status is not None and status >= 500:
            logger.warning("request.complete", extra=fields)
        else:
            logger.info("request.complete", extra=fields)
