"""
HTTP API for guidance validation and precedent feedback.

Routes:
    POST /validation                          → GuidanceValidation
    POST /case-feedback                       → stored FeedbackRecord (create or update, always 200)
    GET  /case-feedback/stats/{case_id}       → helpful / notHelpful totals
    GET  /case-feedback/session/{session_id}  → the session's votes
    GET  /health
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.schemas import (
    FeedbackIn,
    FeedbackOut,
    FeedbackResponse,
    FeedbackStats,
    FeedbackStatsResponse,
    SessionFeedbackResponse,
    ValidationRequestIn,
    ValidationResponse,
)
from src.config.logging_config import session_tag, setup_logger
from src.config.settings import APP_TITLE, APP_VERSION
from src.services.bootstrap import Services, build_services
from src.services.feedback.recorder import validate_case_id, validate_session_id
from src.services.guidance.errors import (
    CollaboratorTimeout,
    CollaboratorUnavailable,
    FeedbackConflict,
    InvalidCaseContext,
    InvalidFeedback,
    RateLimitExceeded,
)

logger = setup_logger(__name__)


def _error(status_code: int, error: str, headers: dict | None = None, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra}, headers=headers)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        messages = [f"{'.'.join(str(p) for p in e['loc'] if p != 'body')}: {e['msg']}" for e in exc.errors()]
        return _error(400, f"Validation failed: {', '.join(messages)}")

    @app.exception_handler(InvalidCaseContext)
    async def _invalid_context(request: Request, exc: InvalidCaseContext):
        return _error(400, str(exc), field=exc.field, reason=exc.reason)

    @app.exception_handler(InvalidFeedback)
    async def _invalid_feedback(request: Request, exc: InvalidFeedback):
        return _error(400, str(exc), field=exc.field, reason=exc.reason)

    @app.exception_handler(RateLimitExceeded)
    async def _rate_limited(request: Request, exc: RateLimitExceeded):
        headers = {
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
        }
        return _error(429, "Too many feedback submissions. Please try again later.", headers=headers)

    @app.exception_handler(CollaboratorUnavailable)
    async def _unavailable(request: Request, exc: CollaboratorUnavailable):
        logger.error("503 on %s: %s", request.url.path, exc)
        return _error(503, "Validation sources are temporarily unavailable. Please retry later.")

    @app.exception_handler(CollaboratorTimeout)
    async def _timeout(request: Request, exc: CollaboratorTimeout):
        logger.error("503 on %s: %s", request.url.path, exc)
        return _error(503, "Validation sources are temporarily unavailable. Please retry later.")

    @app.exception_handler(FeedbackConflict)
    async def _conflict(request: Request, exc: FeedbackConflict):
        logger.error("Feedback conflict persisted after retry: %s", exc)
        return _error(500, "Failed to record feedback")

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s: %s", request.url.path, exc)
        return _error(500, "Internal server error")


def create_app(services: Services | None = None) -> FastAPI:
    """Build the API around the given services (configured backends when omitted)."""
    services = services or build_services()
    app = FastAPI(title=APP_TITLE, version=APP_VERSION)
    app.state.services = services
    _register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.post("/validation", response_model=ValidationResponse)
    async def validate_guidance(body: ValidationRequestIn):
        result = await services.engine.validate(body.to_request())
        return ValidationResponse.from_result(result)

    @app.post("/case-feedback", response_model=FeedbackResponse)
    async def record_case_feedback(body: FeedbackIn, response: Response):
        session_id = validate_session_id(body.session_id)
        case_id = validate_case_id(body.case_id)
        if services.rate_limiter is not None:
            limit = services.rate_limiter.check_limit(session_id)
            if limit.exceeded:
                logger.warning("Feedback rate limit hit (session=%s)", session_tag(session_id))
                raise RateLimitExceeded(limit.retry_after, limit.limit)
            response.headers.update(limit.to_headers())

        record = await services.recorder.record_feedback(
            session_id=session_id,
            precedent_id=case_id,
            is_helpful=body.is_helpful,
            charge_category=body.charge_category,
            jurisdiction=body.jurisdiction,
            case_stage=body.case_stage,
            case_name=body.case_name,
        )
        return FeedbackResponse(feedback=FeedbackOut.from_record(record))

    @app.get("/case-feedback/stats/{case_id}", response_model=FeedbackStatsResponse)
    async def case_feedback_stats(case_id: str):
        stats = await services.recorder.stats(case_id)
        return FeedbackStatsResponse(
            case_id=case_id,
            stats=FeedbackStats(helpful=stats["helpful"], not_helpful=stats["notHelpful"]),
        )

    @app.get("/case-feedback/session/{session_id}", response_model=SessionFeedbackResponse)
    async def session_feedback(session_id: str):
        records = await services.recorder.for_session(session_id)
        return SessionFeedbackResponse(feedback=[FeedbackOut.from_record(r) for r in records])

    return app
