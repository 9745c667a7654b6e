"""Utility functions for daily worklog distribution."""

import json
import os
from datetime import date, datetime, timedelta, timezone

from dotenv import load_dotenv

from patterns import Patterns

# File paths
CONFIG_FILE = "config.json"
ACCOUNTS_FILE = "accounts.json"

DEFAULT_QUERY = 'assignee WAS currentUser() ON -{0}d AND status WAS "In Progress" ON -{0}d'
DEFAULT_SCHEDULE_TIME = "06:00"
DEFAULT_SCHEDULE_DAYS = ["tuesday", "wednesday", "thursday", "friday", "saturday"]
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
DEFAULT_DAYS_AGO = 1
WORKLOG_START_HOUR = 9


def load_config(path: str = CONFIG_FILE) -> dict:
    """Load config.json and overlay secrets from the environment (.env honoured)."""
    load_dotenv()
    with open(path) as f:
        config = json.load(f)

    if os.getenv("DISCORD_TOKEN"):
        config.setdefault("discord", {})["bot_token"] = os.environ["DISCORD_TOKEN"]
    if os.getenv("ENCRYPTION_SECRET_KEY"):
        config.setdefault("encryption", {})["secret_key"] = os.environ["ENCRYPTION_SECRET_KEY"]
    return config


def validate_config(config: dict) -> list[str]:
    """Validate config structure and return list of error messages.

    Returns:
        Empty list if valid, otherwise list of error messages.
    """
    errors = []

    if not config.get("discord", {}).get("bot_token"):
        errors.append("Missing discord.bot_token (or DISCORD_TOKEN)")

    if not config.get("encryption", {}).get("secret_key"):
        errors.append("Missing encryption.secret_key (or ENCRYPTION_SECRET_KEY)")

    schedule = config.get("schedule", {})
    time_of_day = schedule.get("time", DEFAULT_SCHEDULE_TIME)
    if not Patterns.TIME_OF_DAY.match(str(time_of_day)):
        errors.append(f"Invalid schedule.time '{time_of_day}', expected HH:MM")
    for day in schedule.get("days", DEFAULT_SCHEDULE_DAYS):
        if str(day).lower() not in WEEKDAYS:
            errors.append(f"Invalid schedule.days entry '{day}'")

    days_ago = config.get("days_ago", DEFAULT_DAYS_AGO)
    if not isinstance(days_ago, int) or isinstance(days_ago, bool) or days_ago < 1:
        errors.append(f"Invalid days_ago '{days_ago}', expected a positive integer")

    policy = config.get("policy", "fairly")
    if policy not in ("evenly", "fairly"):
        errors.append(f"Invalid policy '{policy}', expected 'evenly' or 'fairly'")

    return errors


def load_config_safe(path: str = CONFIG_FILE) -> dict | None:
    """Load config with user-friendly error messages.

    Returns:
        Config dict if valid, None if errors occurred.
    """
    if not os.path.exists(path):
        print(f"[!] ERROR: {path} not found!")
        print()
        print("    Create config.json based on config.example.json:")
        print("    $ cp config.example.json config.json")
        print("    $ nano config.json  # Fill in your credentials")
        print()
        return None

    try:
        config = load_config(path)
    except json.JSONDecodeError as e:
        print(f"[!] ERROR: {path} is not valid JSON!")
        print(f"    Line {e.lineno}, column {e.colno}: {e.msg}")
        print()
        print("    Check for missing commas, quotes, or brackets.")
        return None

    errors = validate_config(config)
    if errors:
        print(f"[!] ERROR: {path} is incomplete:")
        for err in errors:
            print(f"    - {err}")
        print()
        print("    See config.example.json for the required structure.")
        return None

    return config


# ============================================================================
# Formatting
# ============================================================================


def format_duration(total_seconds: int) -> str:
    """Render seconds as e.g. '1d 1h', '1h 1m', '0h'. Leftover seconds are dropped."""
    days, rest = divmod(int(total_seconds), 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0h"


def substitute(template: str, args) -> str:
    """Replace {0}, {1}, ... with positional args. Unknown indexes stay as-is."""
    values = [str(a) for a in args]

    def _replace(match):
        index = int(match.group(1))
        return values[index] if index < len(values) else match.group(0)

    return Patterns.PLACEHOLDER.sub(_replace, template)


# ============================================================================
# Date Utilities
# ============================================================================


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def get_target_date(days_ago: int = DEFAULT_DAYS_AGO, today: date | None = None) -> date:
    """Get the day whose work is being distributed."""
    return (today or today_utc()) - timedelta(days=days_ago)


def day_bounds_ms(day: date) -> tuple[int, int]:
    """Epoch milliseconds of UTC midnight at the start and end of a day."""
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)


def worklog_started(day: date) -> str:
    """Jira 'started' timestamp for a worklog on the given day."""
    return f"{day.isoformat()}T{WORKLOG_START_HOUR:02d}:00:00.000+0000"
