import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import InvariantViolation, UpstreamFetchError, ValidationError
from app.api.routes.ledger import router as ledger_router
from app.services import invalidation  # noqa: F401  registers cache invalidation on commits

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI()

origins = [o.strip() for o in (settings.cors_origins or "").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def _ledger_validation_failed(request: Request, exc: ValidationError):
    logger.warning("rejected %s row %s: %s", exc.category, exc.source_id, exc.reason)
    return JSONResponse(
        status_code=422,
        content={
            "detail": "ledger_validation_failed",
            "source_id": exc.source_id,
            "category": exc.category,
            "reason": exc.reason,
        },
    )


@app.exception_handler(UpstreamFetchError)
async def _ledger_unavailable(request: Request, exc: UpstreamFetchError):
    logger.error("ledger unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content={
            "detail": "ledger_unavailable",
            "project_id": exc.project_id,
            "date": exc.day.isoformat(),
            "category": exc.category,
        },
    )


@app.exception_handler(InvariantViolation)
async def _ledger_invariant_violation(request: Request, exc: InvariantViolation):
    logger.error("ledger invariant violated on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "ledger_invariant_violation"})


@app.get("/health")
@app.get("/api/health")
def health():
    return {"status": "ok"}

app.include_router(ledger_router)
