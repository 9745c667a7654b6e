"""
Distribute a daily time budget across worked Jira issues and log it.

Usage:
    # Dry-run (default) - shows what would be submitted for yesterday
    python distribute_worklogs.py run

    # Execute - actually creates worklogs and sends DMs
    python distribute_worklogs.py run --execute

    # Keep running and fire on the configured schedule (Tue-Sat 06:00)
    python distribute_worklogs.py schedule --execute

    # Manage registered accounts
    python distribute_worklogs.py accounts list
    python distribute_worklogs.py accounts add --user 123... --guild 456... \\
        --host yourcompany.atlassian.net --username me@example.com --token XXXX
    python distribute_worklogs.py accounts pause --user 123... --guild 456...
"""

import argparse
import time

import schedule

from allocation import POLICIES
from cipher import CredentialCipher
from clients import DiscordMessenger, JiraClient
from distributor import TickDriver
from logs import get_logger, mask_secret
from models import AccountConfig, AccountStatus
from store import AccountNotFoundError, JsonAccountStore
from utils import (
    ACCOUNTS_FILE,
    CONFIG_FILE,
    DEFAULT_DAYS_AGO,
    DEFAULT_SCHEDULE_DAYS,
    DEFAULT_SCHEDULE_TIME,
    load_config_safe,
)
from validators import (
    ValidationError,
    validate_api_token,
    validate_daily_hours,
    validate_email,
    validate_host,
    validate_jql,
    validate_snowflake,
)

POLL_INTERVAL_S = 30

logger = get_logger("distribute_worklogs")


# ============================================================================
# Wiring
# ============================================================================


def build_store(config: dict) -> JsonAccountStore:
    cipher = CredentialCipher(config["encryption"]["secret_key"])
    return JsonAccountStore(cipher, config.get("store", {}).get("path", ACCOUNTS_FILE))


def build_driver(config: dict, execute: bool, policy: str | None = None, days_ago: int | None = None) -> TickDriver:
    store = build_store(config)
    return TickDriver(
        store=store,
        jira=JiraClient(),
        messenger=DiscordMessenger(config["discord"]["bot_token"]),
        cipher=store.cipher,
        logger=get_logger("distributor"),
        days_ago=days_ago or config.get("days_ago", DEFAULT_DAYS_AGO),
        policy=policy or config.get("policy", "fairly"),
        dry_run=not execute,
        notify_on_failure=config.get("notify_on_failure", True),
    )


def build_scheduler(job, time_of_day: str = DEFAULT_SCHEDULE_TIME, days=None) -> schedule.Scheduler:
    """One job per weekday, all firing at the same time of day."""
    scheduler = schedule.Scheduler()
    for day in days or DEFAULT_SCHEDULE_DAYS:
        getattr(scheduler.every(), day.lower()).at(time_of_day).do(job)
    return scheduler


# ============================================================================
# Commands
# ============================================================================


def print_report(report) -> None:
    print()
    print(f"[*] Target date: {report.target_date}")
    if report.skipped:
        print("[!] Another run is still in progress, nothing done")
        return
    if report.aborted:
        print("[!] Could not load accounts, run aborted (see log)")
        return
    for result in report.results:
        line = f"    {result.user_id}@{result.guild_id}: {result.status.value}"
        if result.outcomes:
            ok = len(result.outcomes) - len(result.failed_outcomes)
            line += f" ({ok}/{len(result.outcomes)} submitted, notified={result.notified})"
        if result.error:
            line += f" - {result.error}"
        print(line)
    if any(r.status == AccountStatus.DRY_RUN for r in report.results):
        print()
        print("Run with --execute to apply changes.")


def cmd_run(config: dict, args) -> int:
    driver = build_driver(config, args.execute, args.policy, args.days_ago)
    report = driver.run_tick()
    print_report(report)
    return 1 if report.aborted else 0


def cmd_schedule(config: dict, args) -> int:
    driver = build_driver(config, args.execute, args.policy, args.days_ago)
    settings = config.get("schedule", {})
    time_of_day = settings.get("time", DEFAULT_SCHEDULE_TIME)
    days = settings.get("days", DEFAULT_SCHEDULE_DAYS)
    scheduler = build_scheduler(driver.run_tick, time_of_day, days)

    logger.info(f"Scheduler started. Daily job at {time_of_day} on {', '.join(days)}")
    try:
        while True:
            scheduler.run_pending()
            time.sleep(POLL_INTERVAL_S)
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")
    return 0


def cmd_accounts(config: dict, args) -> int:
    store = build_store(config)

    if args.action == "list":
        accounts = store.list_all()
        if not accounts:
            print("[*] No accounts registered")
        for a in accounts:
            state = "paused" if a.paused else "active"
            print(
                f"    {a.user_id}@{a.guild_id} | {a.host} | {a.username} | "
                f"token {mask_secret(a.token)} | {a.daily_hours}h | {state}"
            )
        return 0

    try:
        user_id = validate_snowflake(args.user, "User ID")
        guild_id = validate_snowflake(args.guild, "Guild ID")

        if args.action == "add":
            account = AccountConfig(
                user_id=user_id,
                guild_id=guild_id,
                host=validate_host(args.host),
                username=validate_email(args.username),
                token=validate_api_token(args.token),
                query_override=validate_jql(args.jql),
                daily_hours=validate_daily_hours(args.hours),
            )
            store.save(account)
            print(f"[+] Saved account {user_id}@{guild_id}")
        elif args.action in ("pause", "resume"):
            store.set_paused(user_id, guild_id, args.action == "pause")
            print(f"[+] Account {user_id}@{guild_id} {args.action}d")
        elif args.action == "remove":
            store.remove(user_id, guild_id)
            print(f"[+] Removed account {user_id}@{guild_id}")
    except ValidationError as e:
        print(f"Error: {e}")
        return 1
    except AccountNotFoundError as e:
        print(f"Error: {e.args[0]}")
        return 1
    return 0


# ============================================================================
# CLI
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Distribute daily hours across worked Jira issues",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("run", "Run one distribution pass now"), ("schedule", "Run on the configured schedule")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--execute", action="store_true", help="Actually submit worklogs (default: dry-run)")
        p.add_argument("--policy", choices=POLICIES, help="Allocation policy (default: from config)")
        p.add_argument("--days-ago", type=int, help="Target day offset (default: from config, 1)")

    p = sub.add_parser("accounts", help="Manage registered accounts")
    p.add_argument("action", choices=["list", "add", "pause", "resume", "remove"])
    p.add_argument("--user", help="Discord user ID")
    p.add_argument("--guild", help="Discord guild ID")
    p.add_argument("--host", help="Jira host, e.g. yourcompany.atlassian.net")
    p.add_argument("--username", help="Jira account e-mail")
    p.add_argument("--token", help="Jira API token")
    p.add_argument("--jql", help="Custom JQL, {0} is replaced with the days-ago offset")
    p.add_argument("--hours", type=int, help="Daily hours to distribute (default: 8)")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.command in ("run", "schedule") and args.days_ago is not None and args.days_ago < 1:
        print(f"Error: Invalid --days-ago '{args.days_ago}'. Expected a positive integer")
        return 1

    config = load_config_safe(args.config)
    if config is None:
        return 1

    commands = {"run": cmd_run, "schedule": cmd_schedule, "accounts": cmd_accounts}
    return commands[args.command](config, args)


if __name__ == "__main__":
    exit(main())
