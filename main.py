import os
import time
import logging

import uvicorn
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from bugmine.api.initialize_revisions import router as initialize_router
from bugmine.api.results import router as results_router
from bugmine.utils.logging_config import setup_logging

setup_logging(level=logging.INFO, log_dir=os.getenv("BUGMINE_LOG_DIR", "logs"))
logger = logging.getLogger("main")

app = FastAPI(title="Bug-Mining Revision Initializer API")


# ---------------------------------------------------------------------------
# Request timing
# ---------------------------------------------------------------------------
class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and duration; runs can take minutes."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        logger.info("-> %s from %s", route, request.client.host if request.client else "unknown")

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s crashed after %.2fms", route, (time.perf_counter() - started) * 1000)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.2f}"
        logger.info("<- %s %d in %.2fms", route, response.status_code, elapsed_ms)
        return response


app.add_middleware(RequestTimingMiddleware)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "bugmine"}


app.include_router(initialize_router, tags=["Pipeline"])
app.include_router(results_router, tags=["Results"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
