"""Data models for daily worklog distribution."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


@dataclass
class AccountConfig:
    """A registered Discord user paired with Jira credentials."""

    user_id: str
    guild_id: str
    host: str
    username: str
    token: str  # Ciphertext as stored
    query_override: str | None = None
    paused: bool = False
    daily_hours: int = 8


@dataclass
class WorkItem:
    """A Jira issue the account worked on."""

    issue_id: str
    key: str
    summary: str
    assignee: str


@dataclass
class WorklogEntry:
    """An existing worklog on an issue."""

    issue_key: str
    author_email: str
    author_name: str
    seconds: int
    started: str


@dataclass
class AllocationResult:
    """Seconds allotted to one work item."""

    item: WorkItem
    seconds: int
    duration: str  # e.g. "1h 1m"


@dataclass
class SubmissionOutcome:
    """Result of committing one allocation."""

    allocation: AllocationResult
    ok: bool
    status_code: int | None = None
    error: str | None = None


class AccountStatus(str, Enum):
    INVALID = "invalid"
    NO_WORK = "no_work"
    ALREADY_LOGGED = "already_logged"
    NOTHING_TO_SUBMIT = "nothing_to_submit"
    SUBMITTED = "submitted"
    DRY_RUN = "dry_run"
    FAILED = "failed"


@dataclass
class AccountResult:
    """What happened to one account during a tick."""

    user_id: str
    guild_id: str
    status: AccountStatus
    outcomes: list[SubmissionOutcome] = field(default_factory=list)
    notified: bool = False
    error: str | None = None

    @property
    def failed_outcomes(self) -> list[SubmissionOutcome]:
        return [o for o in self.outcomes if not o.ok]


@dataclass
class TickReport:
    """State tracking for one scheduled tick."""

    target_date: date
    results: list[AccountResult] = field(default_factory=list)
    aborted: bool = False
    skipped: bool = False

    def count(self, status: AccountStatus) -> int:
        return sum(1 for r in self.results if r.status == status)
