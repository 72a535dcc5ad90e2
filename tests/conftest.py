from types import SimpleNamespace

import pytest

from utils.records import RawSheet, structure

HEADERS = ["Instructor", "Domain", "Topic Code", "Session Date", "Overall Average Rating", "Cohorts"]


@pytest.fixture
def headers():
    return list(HEADERS)


@pytest.fixture
def raw_sheet():
    return RawSheet(
        sheet_name="Live Class Poll",
        rows=[
            list(HEADERS),
            ["John", "Backend", "B1", "2025-01-01", "4.5", "C1"],
            ["John", "Frontend", "F1", "2025-01-02", "3.5", "C2"],
            ["Jane", "Backend", "B2", "2025-01-03", "4.0", "C3"],
        ],
    )


@pytest.fixture
def records(raw_sheet):
    return structure(raw_sheet)


class _Request:
    def __init__(self, payload=None, error=None, calls=None, kwargs=None):
        self.payload = payload
        self.error = error
        self.calls = calls
        self.kwargs = kwargs

    def execute(self, num_retries=0):
        self.calls.append((self.kwargs, num_retries))
        if self.error is not None:
            raise self.error
        return self.payload


class FakeSheetsService:
    """Stands in for googleapiclient's sheets v4 resource: spreadsheets().get / values().get."""

    def __init__(self, tabs, values=None, error=None):
        self.tabs = tabs
        self.values_by_range = values or {}
        self.error = error
        self.calls = []

    def spreadsheets(self):
        return self

    def values(self):
        return SimpleNamespace(get=self._values_get)

    def get(self, spreadsheetId, fields=None):
        payload = {"sheets": [{"properties": {"title": t}} for t in self.tabs]}
        return _Request(payload, self.error, self.calls, {"spreadsheetId": spreadsheetId, "fields": fields})

    def _values_get(self, spreadsheetId, range):
        payload = {"range": range}
        if range in self.values_by_range:
            payload["values"] = self.values_by_range[range]
        return _Request(payload, None, self.calls, {"spreadsheetId": spreadsheetId, "range": range})


class FakeGroqClient:
    """Mimics client.chat.completions.create(...) of the groq SDK."""

    def __init__(self, content="answer", error=None, response=None):
        self.content = content
        self.error = error
        self.response = response
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class StaticSource:
    """Data source returning a fixed RawSheet (or raising a fixed error)."""

    def __init__(self, raw=None, error=None):
        self.raw = raw
        self.error = error
        self.fetched = []

    def fetch(self, sheet_id):
        self.fetched.append(sheet_id)
        if self.error is not None:
            raise self.error
        return self.raw
