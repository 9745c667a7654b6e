"""API clients for Jira and Discord."""

import threading
from datetime import date

import requests

from logs import get_logger, with_context
from models import WorkItem, WorklogEntry
from utils import day_bounds_ms, worklog_started
from validators import ValidationError, validate_issue_key

logger = get_logger(__name__)

JIRA_API = "/rest/api/3"
DISCORD_API = "https://discord.com/api/v10"
SEARCH_FIELDS = ["key", "summary", "assignee"]
SEARCH_MAX_RESULTS = 50


class ApiError(Exception):
    """User-friendly API error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _handle_api_error(response: requests.Response, service: str) -> str:
    """Convert HTTP errors to user-friendly messages."""
    status = response.status_code

    messages = {
        400: f"{service}: Bad request. Check the query or payload!",
        401: f"{service}: Authentication failed. Check the API token!",
        403: f"{service}: Access denied. Check permissions or API token!",
        404: f"{service}: Resource not found. Check the host or issue key!",
        429: f"{service}: Too many requests. Wait a moment and try again.",
        500: f"{service}: Server error. The service may be temporarily unavailable.",
        502: f"{service}: Bad gateway. The service may be temporarily unavailable.",
        503: f"{service}: Service unavailable. Try again later.",
    }

    return messages.get(status, f"{service}: HTTP {status} - {response.reason}")


class JiraClient:
    """Client for the Jira Cloud REST API.

    Credentials are passed per call so one client serves every account.
    Calls run in worker threads; without an injected session each thread
    gets its own requests.Session.
    """

    def __init__(self, session: requests.Session | None = None, timeout: int = 30):
        self._session = session
        self._local = threading.local()
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        if not hasattr(self._local, "session"):
            self._local.session = requests.Session()
        return self._local.session

    @staticmethod
    def _url(host: str, endpoint: str) -> str:
        return f"https://{host}{JIRA_API}{endpoint}"

    def _request(self, method: str, host: str, username: str, token: str, endpoint: str, **kwargs):
        try:
            r = self.session.request(
                method,
                self._url(host, endpoint),
                auth=(username, token),
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.ConnectionError:
            raise ApiError(f"Jira: Cannot connect to {host}. Check your network!")
        except requests.exceptions.Timeout:
            raise ApiError("Jira: Connection timed out. The server may be slow.")

        if not r.ok:
            raise ApiError(_handle_api_error(r, "Jira"), r.status_code)
        return r

    def search_issues(self, host: str, username: str, token: str, jql: str) -> list[WorkItem]:
        """Run a JQL search and return the matching issues."""
        payload = {"jql": jql, "maxResults": SEARCH_MAX_RESULTS, "fields": SEARCH_FIELDS}
        r = self._request("POST", host, username, token, "/search/jql", json=payload)

        items = []
        for issue in r.json().get("issues", []):
            try:
                key = validate_issue_key(issue.get("key"))
            except ValidationError as e:
                logger.warning(with_context("Skipping search result with a malformed key", host=host, error=e))
                continue
            fields = issue.get("fields", {})
            assignee = fields.get("assignee") or {}
            items.append(
                WorkItem(
                    issue_id=str(issue.get("id", "")),
                    key=key,
                    summary=fields.get("summary", ""),
                    assignee=assignee.get("displayName", "Unassigned"),
                )
            )
        return items

    def get_worklogs(self, host: str, username: str, token: str, issue_key: str, day: date) -> list[WorklogEntry]:
        """Fetch worklogs on an issue that started on the given UTC day."""
        started_after, started_before = day_bounds_ms(day)
        r = self._request(
            "GET",
            host,
            username,
            token,
            f"/issue/{issue_key}/worklog",
            params={"startedAfter": started_after, "startedBefore": started_before},
        )

        entries = []
        for wl in r.json().get("worklogs", []):
            author = wl.get("author", {})
            entries.append(
                WorklogEntry(
                    issue_key=issue_key,
                    author_email=author.get("emailAddress", ""),
                    author_name=author.get("displayName", ""),
                    seconds=wl.get("timeSpentSeconds", 0),
                    started=wl.get("started", ""),
                )
            )
        return entries

    def add_worklog(
        self,
        host: str,
        username: str,
        token: str,
        issue_key: str,
        seconds: int,
        day: date,
        notify_users: bool = False,
    ) -> int:
        """Create a worklog starting 09:00 UTC on the given day. Returns the HTTP status."""
        r = self._request(
            "POST",
            host,
            username,
            token,
            f"/issue/{issue_key}/worklog",
            params={"notifyUsers": str(notify_users).lower()},
            json={"started": worklog_started(day), "timeSpentSeconds": seconds},
        )
        return r.status_code


class DiscordMessenger:
    """Sends direct messages through the Discord REST API as a bot."""

    def __init__(self, bot_token: str, session: requests.Session | None = None, timeout: int = 10):
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bot {bot_token}"})
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        try:
            r = self.session.request(method, f"{DISCORD_API}{endpoint}", timeout=self.timeout, **kwargs)
        except requests.exceptions.ConnectionError:
            raise ApiError("Discord: Cannot connect to discord.com. Check your network!")
        except requests.exceptions.Timeout:
            raise ApiError("Discord: Connection timed out.")

        if not r.ok:
            raise ApiError(_handle_api_error(r, "Discord"), r.status_code)
        return r.json() if r.content else {}

    def send_direct(
        self,
        user_id: str,
        guild_id: str,
        content: str | None = None,
        embed: dict | None = None,
    ) -> bool:
        """DM a guild member. Returns False instead of raising on any failure."""
        try:
            # Only message users that are still members of the guild
            self._request("GET", f"/guilds/{guild_id}/members/{user_id}")
            channel = self._request("POST", "/users/@me/channels", json={"recipient_id": user_id})
            payload = {}
            if content:
                payload["content"] = content
            if embed:
                payload["embeds"] = [embed]
            self._request("POST", f"/channels/{channel['id']}/messages", json=payload)
        except (ApiError, requests.exceptions.RequestException, KeyError, ValueError) as e:
            logger.warning(with_context("Could not send direct message", userId=user_id, guildId=guild_id, error=e))
            return False
        return True
