from fastapi import FastAPI, Request
from loguru import logger

from movaplan.api.metrics import router as metrics_router
from movaplan.api.training_plans import router as training_plans_router
from movaplan.config.settings import settings
from movaplan.core.logger import setup_logger

setup_logger(level=settings.log_level, log_file=settings.log_file, serialize=settings.log_json)

app = FastAPI(title="Mova+ Plan Engine")

app.include_router(training_plans_router)
app.include_router(metrics_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
