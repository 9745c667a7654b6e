"""Daily worklog distribution.

For every enabled account, once per tick:

1. Validate the stored fields and decrypt the token
2. Find the issues worked on the target day (JQL search)
3. Skip the account if it already logged time on any of them
4. Split the daily budget across the issues
5. Commit one worklog per issue (concurrently)
6. DM the owner a summary

Accounts are processed one after another; a failure in one account is
logged and never stops the others.
"""

import asyncio
import logging
import random
import threading
from datetime import date
from typing import Callable

from allocation import FAIRLY, build_allocations
from clients import ApiError
from logs import get_logger, with_context
from models import (
    AccountConfig,
    AccountResult,
    AccountStatus,
    AllocationResult,
    SubmissionOutcome,
    TickReport,
    WorkItem,
    WorklogEntry,
)
from notifier import Notifier, render_summary_text
from utils import DEFAULT_DAYS_AGO, DEFAULT_QUERY, get_target_date, substitute, today_utc
from validators import (
    ValidationError,
    validate_api_token,
    validate_daily_hours,
    validate_email,
    validate_host,
    validate_jql,
    validate_snowflake,
)


def build_query(account: AccountConfig, days_ago: int = DEFAULT_DAYS_AGO) -> str:
    """The account's JQL override, or the default 'in progress on that day' query."""
    template = account.query_override or DEFAULT_QUERY
    jql = validate_jql(substitute(template, [days_ago]))
    if not jql:
        raise ValidationError("is empty", "JQL query")
    return jql


def find_own_worklogs(entries: list[WorklogEntry], username: str) -> list[WorklogEntry]:
    """Entries authored by the account (matched on e-mail, case-insensitive)."""
    username = username.lower()
    return [e for e in entries if e.author_email and e.author_email.lower() == username]


class TickDriver:
    """Runs one distribution pass over all enabled accounts per call.

    Collaborators are passed in explicitly:
        store: has list_enabled() -> list[AccountConfig]
        jira: has search_issues(), get_worklogs(), add_worklog()
        messenger: has send_direct(user_id, guild_id, content=None, embed=None)
        cipher: has decrypt(value) -> str
    """

    def __init__(
        self,
        store,
        jira,
        messenger,
        cipher,
        logger: logging.Logger | None = None,
        days_ago: int = DEFAULT_DAYS_AGO,
        policy: str = FAIRLY,
        dry_run: bool = False,
        notify_on_failure: bool = True,
        today: Callable[[], date] = today_utc,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.jira = jira
        self.cipher = cipher
        self.notifier = Notifier(messenger)
        self.logger = logger or get_logger(__name__)
        self.days_ago = days_ago
        self.policy = policy
        self.dry_run = dry_run
        self.notify_on_failure = notify_on_failure
        self.today = today
        self.rng = rng
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def run_tick(self) -> TickReport:
        """Process every enabled account once.

        Only one tick runs at a time; a call made while another is in
        progress returns immediately with ``skipped=True``.
        """
        report = TickReport(target_date=get_target_date(self.days_ago, self.today()))
        if not self._lock.acquire(blocking=False):
            self.logger.warning("Previous tick still running, skipping this one")
            report.skipped = True
            return report
        try:
            asyncio.run(self._run(report))
        finally:
            self._lock.release()
        return report

    async def _run(self, report: TickReport) -> None:
        self.logger.info(with_context("Running daily job...", date=report.target_date, dryRun=self.dry_run or None))
        try:
            accounts = self.store.list_enabled()
        except Exception as e:
            self.logger.error(with_context("Could not load accounts, aborting tick", error=e))
            report.aborted = True
            return

        for account in accounts:
            report.results.append(await self.process_account(account, report.target_date))

        self.logger.info(
            with_context(
                "Daily job finished",
                accounts=len(report.results),
                submitted=report.count(AccountStatus.SUBMITTED),
                alreadyLogged=report.count(AccountStatus.ALREADY_LOGGED),
                noWork=report.count(AccountStatus.NO_WORK),
                invalid=report.count(AccountStatus.INVALID),
                failed=report.count(AccountStatus.FAILED),
            )
        )

    # ------------------------------------------------------------------
    # Per account
    # ------------------------------------------------------------------

    async def process_account(self, account: AccountConfig, day: date) -> AccountResult:
        """Run all stages for one account. Never raises."""
        result = AccountResult(user_id=account.user_id, guild_id=account.guild_id, status=AccountStatus.FAILED)
        context = {"userId": account.user_id, "guildId": account.guild_id}
        try:
            await self._process(account, day, result)
        except ValidationError as e:
            result.status = AccountStatus.INVALID
            result.error = str(e)
            self.logger.error(with_context("Invalid configuration data", **context, error=e))
        except ApiError as e:
            result.status = AccountStatus.FAILED
            result.error = str(e)
            self.logger.error(with_context("Jira request failed", **context, status=e.status_code, error=e))
        except Exception as e:
            result.status = AccountStatus.FAILED
            result.error = str(e)
            self.logger.error(with_context("Processing account failed", **context, error=repr(e)), exc_info=True)
        return result

    async def _process(self, account: AccountConfig, day: date, result: AccountResult) -> None:
        context = {"userId": account.user_id, "guildId": account.guild_id}

        # VALIDATE
        validate_snowflake(account.user_id, "User ID")
        validate_snowflake(account.guild_id, "Guild ID")
        host = validate_host(account.host)
        username = validate_email(account.username)
        daily_hours = validate_daily_hours(account.daily_hours)
        jql = build_query(account, self.days_ago)
        token = validate_api_token(self.cipher.decrypt(account.token))

        self.logger.info(with_context("Processing account", **context, host=host))

        # DISCOVER
        items = await asyncio.to_thread(self.jira.search_issues, host, username, token, jql)
        if not items:
            result.status = AccountStatus.NO_WORK
            self.logger.info(with_context("No work found", **context))
            return

        # GUARD
        own = await self._find_existing(host, username, token, items, day)
        if own:
            result.status = AccountStatus.ALREADY_LOGGED
            self.logger.info(with_context(f"Worklogs found with {len(own)} entries, skipping", **context))
            return

        # ALLOCATE
        allocations, dropped = build_allocations(items, daily_hours * 3600, self.policy, self.rng)
        for item, share, error in dropped:
            self.logger.error(
                with_context("Invalid time value, dropping issue", **context, issueKey=item.key, seconds=share, error=error)
            )
        if not allocations:
            result.status = AccountStatus.NOTHING_TO_SUBMIT
            return

        # SUBMIT
        if self.dry_run:
            result.status = AccountStatus.DRY_RUN
            summary = render_summary_text(allocations, len(items), self.days_ago)
            self.logger.info(with_context(f"[DRY-RUN] Would submit:\n{summary}", **context))
            return

        result.outcomes = await self._submit(host, username, token, allocations, day)
        failed = result.failed_outcomes
        for outcome in failed:
            self.logger.error(
                with_context(
                    "Worklog submission failed",
                    **context,
                    issueKey=outcome.allocation.item.key,
                    status=outcome.status_code,
                    error=outcome.error,
                )
            )
        if len(failed) == len(result.outcomes):
            result.status = AccountStatus.FAILED
            result.error = f"All {len(failed)} submissions failed"
        else:
            result.status = AccountStatus.SUBMITTED

        # NOTIFY
        if failed and not self.notify_on_failure:
            self.logger.warning(with_context("Submission incomplete, notification suppressed", **context))
            return
        result.notified = await asyncio.to_thread(
            self.notifier.notify, account, allocations, len(items), self.days_ago
        )

    async def _find_existing(
        self, host: str, username: str, token: str, items: list[WorkItem], day: date
    ) -> list[WorklogEntry]:
        """Own worklogs on the target day across all items.

        Every lookup runs to completion. If none found an own entry but some
        failed, the first failure is raised since the guard is incomplete.
        """
        results = await asyncio.gather(
            *(asyncio.to_thread(self.jira.get_worklogs, host, username, token, item.key, day) for item in items),
            return_exceptions=True,
        )
        entries = []
        errors = []
        for r in results:
            if isinstance(r, BaseException):
                errors.append(r)
            else:
                entries.extend(r)

        own = find_own_worklogs(entries, username)
        if not own and errors:
            raise errors[0]
        return own

    async def _commit(self, host: str, username: str, token: str, allocation: AllocationResult, day: date):
        try:
            status = await asyncio.to_thread(
                self.jira.add_worklog, host, username, token, allocation.item.key, allocation.seconds, day
            )
        except ApiError as e:
            return SubmissionOutcome(allocation=allocation, ok=False, status_code=e.status_code, error=str(e))
        return SubmissionOutcome(allocation=allocation, ok=True, status_code=status)

    async def _submit(
        self, host: str, username: str, token: str, allocations: list[AllocationResult], day: date
    ) -> list[SubmissionOutcome]:
        """Commit all allocations concurrently and collect every outcome."""
        results = await asyncio.gather(
            *(self._commit(host, username, token, a, day) for a in allocations),
            return_exceptions=True,
        )
        outcomes = []
        for allocation, r in zip(allocations, results):
            if isinstance(r, BaseException):
                outcomes.append(SubmissionOutcome(allocation=allocation, ok=False, error=repr(r)))
            else:
                outcomes.append(r)
        return outcomes
