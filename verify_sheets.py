#!/usr/bin/env python3
"""
Google Sheets connection check: environment, key file, tab list, sample read per tab.
Run from the project root:  python verify_sheets.py
"""
import os
import sys
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from agents.data_agent import SheetsDataSource, build_sheets_service, load_service_account_info
from utils.errors import FetchError

REQUIRED_KEY_FIELDS = ("client_email", "private_key", "project_id")
SAMPLE_RANGE = "A1:C5"


def check_environment(env: Optional[Mapping[str, str]] = None) -> List[str]:
    """Return a list of problems with the sheet id and service account key settings (empty when OK)."""
    env = os.environ if env is None else env
    problems = []
    sheet_id = (env.get("GOOGLE_SHEET_ID") or "").strip()
    key = (env.get("GOOGLE_SERVICE_ACCOUNT_KEY") or "").strip()
    if not sheet_id:
        problems.append("GOOGLE_SHEET_ID is not set")
    if not key:
        problems.append("GOOGLE_SERVICE_ACCOUNT_KEY is not set")
        return problems

    try:
        payload = load_service_account_info(key)
    except FetchError as e:
        problems.append(str(e))
        return problems

    missing = [f for f in REQUIRED_KEY_FIELDS if not payload.get(f)]
    if missing:
        problems.append(f"Key file missing fields: {', '.join(missing)}")
    return problems


def main() -> int:
    load_dotenv()
    print("Checking environment...")
    problems = check_environment()
    for p in problems:
        print(f"  FAIL {p}")
    if problems:
        print("\nFix the settings above in .env and run again.")
        return 1
    print("  OK  Environment")

    sheet_id = os.environ["GOOGLE_SHEET_ID"].strip()
    try:
        source = SheetsDataSource(build_sheets_service(os.environ["GOOGLE_SERVICE_ACCOUNT_KEY"].strip()))
        tabs = source.list_tabs(sheet_id)
    except Exception as e:
        print(f"  FAIL Spreadsheet access: {e}")
        print("\nShare the spreadsheet with the service account email and check its permissions.")
        return 1
    print(f"  OK  Spreadsheet access. Tabs: {', '.join(tabs)}")

    failed = 0
    for tab in tabs:
        try:
            rows = source.read_range(sheet_id, tab, SAMPLE_RANGE)
            print(f"  OK  {tab}: {len(rows)} row(s); headers: {rows[0] if rows else []}")
        except Exception as e:
            print(f"  FAIL {tab}: {e}")
            failed += 1
    if failed:
        print(f"\n{failed} tab(s) could not be read.")
        return 1
    print("\nAll checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
