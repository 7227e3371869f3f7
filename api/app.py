from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional
import logging, os, uuid

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

# ---- Core imports ----
from sat_core import config
from sat_core.loader import test_from_dict
from sat_core.result_export import outcomes_to_csv, result_to_dict
from sat_core.scoring import score_attempt
from sat_core.types import ErrorKind, ScoringError, StudentAnswer, TestAttempt, ValidationResult
from sat_core.validators import validate_test, validate_test_attempt
from .storage import ResultStore, utcnow_iso

log = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UPSTREAM_FAILURE: 502,
}

ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()
]

# ---- Schemas ----
class AnswerIn(BaseModel):
    question_id: str
    value: int | float | str | list | None = None
    time_spent: float = 0.0
    skipped: bool = False
    flagged: bool = False
    answered_at: datetime | None = None

class SubmitReq(BaseModel):
    attempt_id: str
    user_id: str = ""
    answers: list[AnswerIn] = []
    status: str = "submitted"   # the client finalizes before submitting
    started_at: datetime | None = None
    submitted_at: datetime | None = None
    total_time_spent: float = 0.0

# ---- Helpers ----
def get_store(request: Request) -> ResultStore:
    return request.app.state.store


def _validation_response(res: ValidationResult, message: str) -> JSONResponse:
    body = {"kind": ErrorKind.VALIDATION.value, "message": message, **res.to_dict()}
    return JSONResponse(status_code=STATUS_BY_KIND[ErrorKind.VALIDATION], content=body)


def _to_attempt(test_id: str, req: SubmitReq) -> TestAttempt:
    return TestAttempt(
        id=req.attempt_id,
        test_id=test_id,
        user_id=req.user_id,
        answers=[
            StudentAnswer(
                question_id=a.question_id,
                value=a.value,
                time_spent=a.time_spent,
                skipped=a.skipped,
                flagged=a.flagged,
                answered_at=a.answered_at,
            )
            for a in req.answers
        ],
        status=req.status,  # type: ignore[arg-type]
        started_at=req.started_at,
        submitted_at=req.submitted_at,
        total_time_spent=req.total_time_spent,
    )


def _decorate_result(base: dict[str, Any], *, result_id: str | None = None) -> dict[str, Any]:
    rid = result_id or str(uuid.uuid4())
    report = dict(base)
    report["id"] = rid
    report["resultId"] = rid
    report["created_at"] = utcnow_iso()
    return report


def _stored_for(existing: dict[str, Any], test_id: str, req: SubmitReq) -> dict[str, Any]:
    # an attempt id is bound to the test and user that first submitted it
    if existing.get("test_id") != test_id or (existing.get("user_id") or "") != req.user_id:
        log.warning("attempt %s resubmitted for %s by %r, already scored for %s",
                    req.attempt_id, test_id, req.user_id, existing.get("test_id"))
        raise HTTPException(409, "attempt id already used for another test or user")
    log.info("attempt %s already scored, returning stored result", req.attempt_id)
    return existing


router = APIRouter()

@router.get("/")
def root():
    return {"status": "ok", "service": "sat-scoring-api"}

# ---- Health ----
@router.get("/health")
def health(store: ResultStore = Depends(get_store)):
    return {"status": "ok", "store_open": store.is_open, "result_export": config.RESULT_EXPORT_ENABLED}

# ---- Tests ----
@router.post("/tests/validate")
def validate_definition(payload: dict = Body(...)):
    test = test_from_dict(payload)
    return validate_test(test).to_dict()

@router.post("/tests")
def create_test(payload: dict = Body(...), store: ResultStore = Depends(get_store)):
    test = test_from_dict(payload)
    res = validate_test(test)
    if not res.valid:
        log.warning("rejected test %s: %d validation errors", test.id, len(res.errors))
        return _validation_response(res, "test definition is invalid")
    store.save_test(test.id, payload)
    return {"test_id": test.id, "valid": True}

@router.get("/tests/{test_id}")
def get_test(test_id: str, store: ResultStore = Depends(get_store)):
    raw = store.load_test(test_id)
    if raw is None:
        raise HTTPException(404, "test not found")
    return raw

@router.post("/tests/{test_id}/submit")
def submit_attempt(test_id: str, req: SubmitReq, store: ResultStore = Depends(get_store)):
    existing = store.find_result_by_attempt(req.attempt_id)
    if existing:
        # resubmission returns the stored result; results are never recomputed in place
        return _stored_for(existing, test_id, req)

    raw = store.load_test(test_id)
    if raw is None:
        raise HTTPException(404, "test not found")
    test = test_from_dict(raw)
    attempt = _to_attempt(test_id, req)

    res = validate_test_attempt(test, attempt)
    if not res.valid:
        log.warning("rejected attempt %s for %s: %d validation errors", attempt.id, test_id, len(res.errors))
        return _validation_response(res, "attempt is invalid")

    result = score_attempt(test, attempt)
    report = _decorate_result(result_to_dict(result))
    metadata = {
        "attemptId": attempt.id,
        "testId": test.id,
        "userId": attempt.user_id or None,
        "createdAt": report["created_at"],
        "totalScore": result.total_score,
        "scaledScore": result.scaled_score,
    }
    stored = store.save_result_once(report["id"], report, metadata)
    if stored["id"] != report["id"]:
        return _stored_for(stored, test_id, req)
    log.info("scored attempt %s for %s: %s/%s (%s)",
             attempt.id, test_id, result.total_score, result.max_score, result.scaled_score)
    return report

# ---- Results ----
@router.get("/results/{result_id}")
def get_result(result_id: str, store: ResultStore = Depends(get_store)):
    report = store.load_result(result_id)
    if not report:
        raise HTTPException(404, "result not found")
    return report

@router.get("/results/{result_id}/questions.csv")
def get_result_csv(result_id: str, store: ResultStore = Depends(get_store)):
    if not config.RESULT_EXPORT_ENABLED:
        raise HTTPException(404, "result export disabled")
    report = store.load_result(result_id)
    if not report:
        raise HTTPException(404, "result not found")
    body = outcomes_to_csv(report.get("question_outcomes") or [])
    filename = f"{result_id}_questions.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )

@router.get("/users/{user_id}/results")
def list_results(user_id: str, store: ResultStore = Depends(get_store)):
    return {"results": store.list_results_for_user(user_id)}


def create_app(store: Optional[ResultStore] = None) -> FastAPI:
    """Build the API around an explicitly owned store.

    The store is opened when the app starts and closed when it stops; pass
    one in to point the app at a specific data directory.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store or ResultStore()
        app.state.store = owned.open()
        try:
            yield
        finally:
            owned.close()

    app = FastAPI(title="SAT Scoring API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    @app.exception_handler(ScoringError)
    async def _scoring_error(_request: Request, exc: ScoringError):
        return JSONResponse(status_code=STATUS_BY_KIND.get(exc.kind, 500), content=exc.to_dict())

    app.include_router(router)
    return app


app = create_app()
