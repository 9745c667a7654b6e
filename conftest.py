"""Shared fakes for the distributor tests."""

from datetime import date

import pytest

from clients import ApiError
from models import AccountConfig, WorkItem, WorklogEntry

USER_ID = "123456789012345678"
GUILD_ID = "876543210987654321"
TODAY = date(2026, 10, 18)
TARGET_DAY = date(2026, 10, 17)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, reason: str = "OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        self.content = b"" if payload is None else b"{}"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    """Records requests and returns queued responses (or raises queued exceptions)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.headers = {}

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class PlainCipher:
    """Stored tokens are plaintext."""

    def decrypt(self, value: str) -> str:
        return value

    def encrypt(self, value: str) -> str:
        return value


class FakeStore:
    def __init__(self, accounts=None, fail_times: int = 0):
        self.accounts = accounts or []
        self.fail_times = fail_times
        self.calls = 0

    def list_enabled(self):
        self.calls += 1
        if self.fail_times:
            self.fail_times -= 1
            raise ConnectionError("database unavailable")
        return [a for a in self.accounts if not a.paused]


class FakeJira:
    """Issues, worklogs and failures keyed by host / issue key."""

    def __init__(self, issues=None, worklogs=None, search_errors=None, worklog_errors=None, commit_errors=None):
        self.issues = issues or {}
        self.worklogs = worklogs or {}
        self.search_errors = search_errors or {}
        self.worklog_errors = worklog_errors or {}
        self.commit_errors = commit_errors or {}
        self.searches = []
        self.lookups = []
        self.commits = []

    def search_issues(self, host, username, token, jql):
        self.searches.append((host, username, token, jql))
        if host in self.search_errors:
            raise self.search_errors[host]
        return list(self.issues.get(host, []))

    def get_worklogs(self, host, username, token, issue_key, day):
        self.lookups.append((host, issue_key, day))
        if issue_key in self.worklog_errors:
            raise self.worklog_errors[issue_key]
        return list(self.worklogs.get(issue_key, []))

    def add_worklog(self, host, username, token, issue_key, seconds, day):
        self.commits.append((host, issue_key, seconds, day))
        if issue_key in self.commit_errors:
            raise self.commit_errors[issue_key]
        return 201


class FakeMessenger:
    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent = []

    def send_direct(self, user_id, guild_id, content=None, embed=None):
        self.sent.append((user_id, guild_id, content, embed))
        return self.deliver


def make_account(**overrides) -> AccountConfig:
    values = dict(
        user_id=USER_ID,
        guild_id=GUILD_ID,
        host="acme.atlassian.net",
        username="dev@acme.io",
        token="plain-token-12345",
    )
    values.update(overrides)
    return AccountConfig(**values)


def make_items(count: int, prefix: str = "PROJ") -> list[WorkItem]:
    return [
        WorkItem(issue_id=str(1000 + i), key=f"{prefix}-{i + 1}", summary=f"Task {i + 1}", assignee="Dev One")
        for i in range(count)
    ]


def make_worklog(issue_key: str, email: str = "dev@acme.io") -> WorklogEntry:
    return WorklogEntry(
        issue_key=issue_key,
        author_email=email,
        author_name="Dev One",
        seconds=3600,
        started="2026-10-17T09:00:00.000+0000",
    )


def api_error(status: int = 401) -> ApiError:
    return ApiError(f"Jira: HTTP {status}", status)


@pytest.fixture
def messenger():
    return FakeMessenger()
