"""
Session Ratings Assistant: FastAPI app.
Callers are authenticated upstream; this layer only validates the query and runs the pipeline.
"""
import logging
from typing import Any, Callable

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from agents.orchestrator import QUERY_REQUIRED
from agents.orchestrator import run as orchestrator_run

logging.basicConfig(level=logging.INFO, format="%(name)s | %(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Session Ratings Assistant API", version="0.1.0")


class AnalyzeRequest(BaseModel):
    query: Any = None


def get_runner() -> Callable[[str], dict]:
    return orchestrator_run


def _query_required() -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": QUERY_REQUIRED})


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    logger.info("analyze_invalid_body: %s", exc.errors())
    return _query_required()


@app.get("/")
def root():
    return {"status": "ok", "message": "Session Ratings Assistant API"}


@app.post("/analyze")
def analyze(body: AnalyzeRequest, runner: Callable[[str], dict] = Depends(get_runner)):
    if not isinstance(body.query, str) or not body.query.strip():
        return _query_required()
    try:
        return runner(body.query.strip())
    except Exception:
        logger.exception("analyze_endpoint_failed")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to process query"})
