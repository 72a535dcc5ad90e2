"""
Data agent: fetches the raw ratings sheet for the configured tab.
SheetsDataSource reads Google Sheets (service injected); WorkbookDataSource reads an exported .xlsx/.csv copy.
Both raise FetchError; neither caches between requests.
"""
import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

from utils.errors import FetchError
from utils.excel_parser import list_sheet_names, read_sheet_rows
from utils.records import RawSheet

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]


def select_tab(tab_names: Sequence[str], keyword: str, default: str) -> str:
    """First tab (reported order) whose name contains keyword, case-sensitive; else default."""
    for name in tab_names:
        if keyword and keyword in name:
            return name
    return default


def _a1_range(tab: str, cell_range: str) -> str:
    return "'" + tab.replace("'", "''") + "'!" + cell_range


def load_service_account_info(key: str) -> dict:
    """Key may be inline JSON or a path to the key file. The payload must be a JSON object."""
    try:
        info = json.loads(key)
    except json.JSONDecodeError:
        path = Path(key).expanduser()
        if not path.exists():
            raise FetchError(f"Service account key file not found: {key}")
        try:
            info = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise FetchError(f"Service account key file is not valid JSON: {exc}") from exc
    if not isinstance(info, dict):
        raise FetchError(f"Service account key must be a JSON object, got {type(info).__name__}")
    return info


def build_sheets_service(service_account_key: Optional[str], timeout_seconds: float = 30.0):
    """
    Build a read-only Sheets v4 service from a service account key.
    The HTTP transport is bounded by timeout_seconds.
    """
    if not service_account_key:
        raise FetchError("GOOGLE_SERVICE_ACCOUNT_KEY is not set")
    info = load_service_account_info(service_account_key)

    import google_auth_httplib2
    import httplib2
    from google.oauth2 import service_account
    from googleapiclient.discovery import build

    try:
        credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, KeyError) as exc:
        raise FetchError(f"Failed to authenticate with Google Sheets: {exc}") from exc
    http = google_auth_httplib2.AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout_seconds))
    return build("sheets", "v4", http=http, cache_discovery=False)


class SheetsDataSource:
    """Reads the ratings tab through an injected Sheets API service object."""

    def __init__(
        self,
        service: Any,
        tab_keyword: str = "Poll",
        default_tab: str = "Sheet1",
        cell_range: str = "A1:P1000",
        num_retries: int = 1,
    ):
        self.service = service
        self.tab_keyword = tab_keyword
        self.default_tab = default_tab
        self.cell_range = cell_range
        self.num_retries = num_retries

    def list_tabs(self, sheet_id: str) -> List[str]:
        info = (
            self.service.spreadsheets()
            .get(spreadsheetId=sheet_id, fields="sheets.properties.title")
            .execute(num_retries=self.num_retries)
        )
        return [s.get("properties", {}).get("title", "") for s in (info or {}).get("sheets", [])]

    def read_range(self, sheet_id: str, tab: str, cell_range: Optional[str] = None) -> List[List[Any]]:
        response = (
            self.service.spreadsheets()
            .values()
            .get(spreadsheetId=sheet_id, range=_a1_range(tab, cell_range or self.cell_range))
            .execute(num_retries=self.num_retries)
        )
        return (response or {}).get("values") or []

    def fetch(self, sheet_id: Optional[str]) -> RawSheet:
        if not sheet_id:
            raise FetchError("GOOGLE_SHEET_ID is not set")
        try:
            tabs = self.list_tabs(sheet_id)
            logger.info("sheets_available: %s", tabs)
            target = select_tab(tabs, self.tab_keyword, self.default_tab)
            logger.info("sheets_selected: tab=%s", target)
            rows = self.read_range(sheet_id, target)
        except Exception as exc:
            logger.error("sheets_fetch_failed: %s", exc)
            raise FetchError(f"Failed to fetch data from Google Sheets: {exc}") from exc

        if not rows:
            raise FetchError("Failed to fetch data from Google Sheets: No data found in the spreadsheet")
        logger.info("sheets_fetched: tab=%s rows=%d", target, len(rows))
        return RawSheet(sheet_name=target, rows=[[str(c) for c in row] for row in rows])


class WorkbookDataSource:
    """Reads an exported copy of the ratings sheet (.xlsx, .xls or .csv) with the same tab policy."""

    def __init__(self, tab_keyword: str = "Poll", default_tab: str = "Sheet1"):
        self.tab_keyword = tab_keyword
        self.default_tab = default_tab

    def fetch(self, sheet_id: Optional[str]) -> RawSheet:
        if not sheet_id:
            raise FetchError("RATINGS_WORKBOOK is not set")
        path = Path(sheet_id).expanduser()
        if not path.exists():
            raise FetchError(f"Workbook not found: {path}")
        try:
            tabs = list_sheet_names(path)
            target = select_tab(tabs, self.tab_keyword, self.default_tab)
            if target not in tabs:
                raise FetchError(f"Tab '{target}' not found in workbook {path.name}")
            rows = read_sheet_rows(path, target)
        except FetchError:
            raise
        except Exception as exc:
            logger.error("workbook_read_failed: path=%s error=%s", path, exc)
            raise FetchError(f"Failed to read workbook {path.name}: {exc}") from exc
        if not rows:
            raise FetchError(f"No data found in tab '{target}' of {path.name}")
        logger.info("workbook_fetched: path=%s tab=%s rows=%d", path.name, target, len(rows))
        return RawSheet(sheet_name=target, rows=rows)
