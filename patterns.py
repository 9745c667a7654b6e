"""Centralized regex patterns for worklog distribution."""

import re


class Patterns:
    """Regex patterns used throughout the distribution process."""

    # Jira issue key: PROJ-123
    ISSUE_KEY = re.compile(r"^[A-Z][A-Z0-9]*-[0-9]+$")

    # Discord snowflake: 17-19 digits
    SNOWFLAKE = re.compile(r"^[0-9]{17,19}$")

    # E-mail used as Jira username
    EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

    # Host without scheme: yourcompany.atlassian.net
    DOMAIN = re.compile(
        r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
        r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
    )

    # Leading http:// or https://
    SCHEME = re.compile(r"^https?://", re.IGNORECASE)

    # Positional placeholder in query templates: {0}
    PLACEHOLDER = re.compile(r"\{(\d+)\}")

    # At least one JQL keyword or operator
    JQL_KEYWORD = re.compile(
        r"\b(assignee|project|status|created|updated|key|summary|worklogDate|"
        r"worklogAuthor|AND|OR|NOT|WAS|ON|IN|IS)\b|!=|>=|<=|=|>|<",
        re.IGNORECASE,
    )

    # Schedule time: HH:MM
    TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
