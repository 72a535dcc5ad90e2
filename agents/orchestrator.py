"""
Orchestrator: fixed pipeline for one question.
fetch -> structure -> validate headers -> relevance filter -> serialize -> completion,
with the local analyst as the error path of the completion step.

Failures up to and including header validation end the request with success=False.
Failures from the relevance filter onward fall back to the local report.
"""
import logging
import threading
from typing import Any, List, Optional, Tuple

from config import Settings
from utils.csv_serializer import to_delimited_text
from utils.errors import FetchError, RatingsAssistantError
from utils.records import DOMAIN_COL, INSTRUCTOR_COL, RawSheet, Record, structure, validate_headers, vocabulary

from .analyst import analyze_locally
from .data_agent import SheetsDataSource, WorkbookDataSource, build_sheets_service
from .relevance import filter_relevant
from .responder import CompletionAnalyzer, build_groq_client

logger = logging.getLogger(__name__)

QUERY_REQUIRED = "Query is required"
CANCELLED = "Request cancelled"


def _success(data: str) -> dict:
    return {"success": True, "data": data}


def _failure(error: str) -> dict:
    return {"success": False, "error": error}


def build_source(settings: Settings) -> Tuple[Any, Optional[str]]:
    """Data source and the id it fetches: the workbook when RATINGS_WORKBOOK is set, else Google Sheets."""
    if settings.workbook_path:
        return WorkbookDataSource(settings.tab_keyword, settings.default_tab), settings.workbook_path
    service = build_sheets_service(settings.service_account_key, settings.timeout_seconds)
    source = SheetsDataSource(
        service,
        tab_keyword=settings.tab_keyword,
        default_tab=settings.default_tab,
        cell_range=settings.sheet_range,
        num_retries=settings.max_retries,
    )
    return source, settings.sheet_id


def build_responder(settings: Settings) -> Optional[CompletionAnalyzer]:
    client = build_groq_client(settings.groq_api_key, settings.timeout_seconds, settings.max_retries)
    if client is None:
        return None
    return CompletionAnalyzer(
        client,
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        max_data_chars=settings.max_data_chars,
    )


def _error_text(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def _load_records(source: Any, sheet_id: Optional[str]) -> Tuple[Optional[RawSheet], List[Record], Optional[str]]:
    """Fetch + structure + validate. Returns (raw, records, error); any error here is fatal."""
    try:
        raw = source.fetch(sheet_id)
        records = structure(raw)
        validate_headers(raw.headers)
    except RatingsAssistantError as exc:
        return None, [], _error_text(exc)
    except Exception as exc:
        logger.exception("load_unexpected_error: %s", exc)
        return None, [], f"Failed to load ratings data: {_error_text(exc)}"
    logger.info("records_loaded: sheet=%s records=%d", raw.sheet_name, len(records))
    return raw, records, None


def _complete(
    query: str, raw: RawSheet, records: List[Record], responder: Optional[CompletionAnalyzer]
) -> Tuple[Optional[str], Optional[str]]:
    """Relevance filter + serialize + completion. Returns (answer, error); error means use the fallback."""
    if responder is None:
        return None, "completion service not configured"
    try:
        relevant = filter_relevant(query, records)
        csv_text = to_delimited_text(raw.headers, relevant)
        answer = responder.analyze(
            query,
            len(records),
            csv_text,
            len(relevant),
            vocabulary(records, INSTRUCTOR_COL),
            vocabulary(records, DOMAIN_COL),
        )
    except RatingsAssistantError as exc:
        return None, str(exc)
    except Exception as exc:
        logger.exception("completion_path_failed: %s", exc)
        return None, str(exc)
    return answer, None


def run(
    query: str,
    source: Any = None,
    responder: Any = None,
    settings: Optional[Settings] = None,
    cancel_event: Optional[threading.Event] = None,
) -> dict:
    """
    Answer one question. Returns {"success": True, "data": str} or {"success": False, "error": str}.
    source/responder default to the ones described by settings (Settings.from_env() when omitted);
    pass them explicitly to supply test doubles.
    """
    if not query or not str(query).strip():
        return _failure(QUERY_REQUIRED)
    query = str(query).strip()
    logger.info("query: %s", query)

    if settings is None:
        settings = Settings.from_env()
    sheet_id = settings.workbook_path or settings.sheet_id
    if source is None:
        try:
            source, sheet_id = build_source(settings)
        except FetchError as exc:
            logger.error("source_unavailable: %s", exc)
            return _failure(_error_text(exc))
        except Exception as exc:
            logger.exception("source_unexpected_error: %s", exc)
            return _failure(f"Failed to connect to the ratings source: {_error_text(exc)}")
    if responder is None:
        try:
            responder = build_responder(settings)
        except Exception as exc:
            logger.exception("responder_unavailable: %s", exc)

    if cancel_event is not None and cancel_event.is_set():
        return _failure(CANCELLED)
    raw, records, error = _load_records(source, sheet_id)
    if error is not None:
        logger.error("load_failed: %s", error)
        return _failure(error)

    if cancel_event is not None and cancel_event.is_set():
        return _failure(CANCELLED)
    answer, error = _complete(query, raw, records, responder)
    if answer is not None:
        logger.info("answer_source: completion")
        return _success(answer)

    logger.info("answer_source: fallback reason=%s", error)
    return _success(analyze_locally(query, records))
