"""Summary messages sent to account owners after their time is submitted."""

from logs import get_logger, with_context
from models import AccountConfig, AllocationResult

logger = get_logger(__name__)

EMBED_COLOR = 0x00FF00
MAX_EMBED_FIELDS = 25  # Discord limit
FOOTER = "Your time was submitted."


def describe_day(days_ago: int) -> str:
    return "yesterday" if days_ago == 1 else f"{days_ago} days ago"


def build_title(issue_count: int, days_ago: int = 1) -> str:
    noun = "issue" if issue_count == 1 else "issues"
    return f"You worked on {issue_count} {noun} {describe_day(days_ago)}"


def build_summary_embed(allocations: list[AllocationResult], issue_count: int, days_ago: int = 1) -> dict:
    """Discord embed with one field per allocated issue.

    Past the field limit the last field counts the issues left out.
    """
    shown = allocations
    if len(allocations) > MAX_EMBED_FIELDS:
        shown = allocations[: MAX_EMBED_FIELDS - 1]
    fields = [
        {
            "name": f"{a.item.key} ({a.item.assignee})",
            "value": f"{a.item.summary}\n- {a.duration}",
            "inline": False,
        }
        for a in shown
    ]
    hidden = len(allocations) - len(shown)
    if hidden:
        fields.append({"name": f"... and {hidden} more", "value": "See the worklogs in Jira", "inline": False})
    return {
        "title": build_title(issue_count, days_ago),
        "color": EMBED_COLOR,
        "fields": fields,
        "footer": {"text": FOOTER},
    }


def render_summary_text(allocations: list[AllocationResult], issue_count: int, days_ago: int = 1) -> str:
    """Plain-text version of the summary, used as message fallback and in logs."""
    lines = [build_title(issue_count, days_ago)]
    for a in allocations:
        lines.append(f"- {a.item.key} ({a.item.assignee}): {a.item.summary} - {a.duration}")
    lines.append(FOOTER)
    return "\n".join(lines)


class Notifier:
    """Best-effort delivery of the daily summary."""

    def __init__(self, messenger):
        self.messenger = messenger

    def notify(
        self, account: AccountConfig, allocations: list[AllocationResult], issue_count: int, days_ago: int = 1
    ) -> bool:
        """Send the summary. Returns whether the messenger delivered it."""
        embed = build_summary_embed(allocations, issue_count, days_ago)
        try:
            return bool(self.messenger.send_direct(account.user_id, account.guild_id, embed=embed))
        except Exception as e:
            logger.warning(
                with_context("Notification failed", userId=account.user_id, guildId=account.guild_id, error=e)
            )
            return False
