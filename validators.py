"""Field validators for stored account data.

Each validator returns the sanitized value or raises ValidationError.
"""

from patterns import Patterns

DEFAULT_DAILY_HOURS = 8


class ValidationError(ValueError):
    """A malformed account field or query."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(f"{field}: {message}" if field else message)
        self.field = field


def validate_string(
    value,
    field: str,
    required: bool = False,
    min_length: int = 0,
    max_length: int | None = None,
    pattern=None,
) -> str:
    """Validate a string and return it stripped.

    Returns an empty string for a missing optional value.
    """
    if value is None:
        if required:
            raise ValidationError("is required", field)
        return ""
    if not isinstance(value, str):
        raise ValidationError("must be a string", field)

    value = value.strip()
    if required and not value:
        raise ValidationError("cannot be empty", field)
    if len(value) < min_length:
        raise ValidationError(f"must be at least {min_length} characters long", field)
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"must be no more than {max_length} characters long", field)
    if pattern is not None and not pattern.match(value):
        raise ValidationError("format is invalid", field)
    return value


def validate_number(
    value,
    field: str,
    required: bool = False,
    minimum: float | None = None,
    maximum: float | None = None,
    integer: bool = False,
):
    """Validate a number within bounds. Missing optional values become 0."""
    if value is None:
        if required:
            raise ValidationError("is required", field)
        return 0
    if isinstance(value, bool):
        raise ValidationError("must be a valid number", field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError("must be a valid number", field)

    if integer and not number.is_integer():
        raise ValidationError("must be a whole number", field)
    if minimum is not None and number < minimum:
        raise ValidationError(f"must be at least {minimum}", field)
    if maximum is not None and number > maximum:
        raise ValidationError(f"must be no more than {maximum}", field)
    return int(number) if integer else number


def validate_host(host) -> str:
    """Validate a Jira host and strip any scheme or trailing slash."""
    value = validate_string(host, "Jira host", required=True, min_length=5, max_length=200)
    value = Patterns.SCHEME.sub("", value).rstrip("/")

    if not Patterns.DOMAIN.match(value):
        raise ValidationError("must be a valid domain name", "Jira host")
    if "." not in value and len(value) < 8:
        raise ValidationError(
            "appears to be invalid, use the full domain (e.g. yourcompany.atlassian.net)",
            "Jira host",
        )
    return value


def validate_email(email) -> str:
    value = validate_string(email, "Email", required=True, min_length=5, max_length=254)
    if not Patterns.EMAIL.match(value):
        raise ValidationError("format is invalid", "Email")
    return value.lower()


def validate_api_token(token) -> str:
    value = validate_string(token, "API token", required=True, min_length=10, max_length=500)
    if any(c in value for c in (" ", "\n", "\t")):
        raise ValidationError("contains invalid characters", "API token")
    return value


def validate_snowflake(value, field: str) -> str:
    """Validate a Discord ID (17-19 digits)."""
    value = validate_string(value, field, required=True, min_length=17, max_length=19)
    if not Patterns.SNOWFLAKE.match(value):
        raise ValidationError("must contain only digits", field)
    return value


def validate_jql(jql) -> str | None:
    """Validate a JQL query. Returns None for an empty query."""
    if not jql:
        return None
    value = validate_string(jql, "JQL query", min_length=5, max_length=1000)
    if not Patterns.JQL_KEYWORD.search(value):
        raise ValidationError("does not appear to contain valid JQL syntax", "JQL query")
    return value or None


def validate_daily_hours(hours) -> int:
    """Validate the daily budget in hours (1-24), defaulting to 8."""
    value = validate_number(hours, "Daily hours", minimum=1, maximum=24, integer=True)
    return value or DEFAULT_DAILY_HOURS


def validate_issue_key(key) -> str:
    return validate_string(
        key, "Issue key", required=True, min_length=3, max_length=50, pattern=Patterns.ISSUE_KEY
    )
