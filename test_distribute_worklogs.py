"""Tests for the CLI wiring and the schedule."""

import datetime
import json

import pytest

from cipher import CredentialCipher
from conftest import GUILD_ID, USER_ID
from distribute_worklogs import build_driver, build_scheduler, main
from store import JsonAccountStore


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "discord": {"bot_token": "bot-token"},
                "encryption": {"secret_key": "secret"},
                "store": {"path": str(tmp_path / "accounts.json")},
            }
        )
    )
    return path


def load_store(config_path) -> JsonAccountStore:
    config = json.loads(config_path.read_text())
    return JsonAccountStore(CredentialCipher("secret"), config["store"]["path"])


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

class TestScheduler:

    def test_default_weekdays(self):
        scheduler = build_scheduler(lambda: None)
        assert len(scheduler.jobs) == 5
        assert {job.start_day for job in scheduler.jobs} == {"tuesday", "wednesday", "thursday", "friday", "saturday"}
        assert {job.at_time for job in scheduler.jobs} == {datetime.time(6, 0)}

    def test_custom_schedule(self):
        scheduler = build_scheduler(lambda: None, "07:30", ["Monday"])
        assert len(scheduler.jobs) == 1
        assert scheduler.jobs[0].start_day == "monday"
        assert scheduler.jobs[0].at_time == datetime.time(7, 30)


# ---------------------------------------------------------------------------
# Driver wiring
# ---------------------------------------------------------------------------

class TestBuildDriver:

    def test_dry_run_by_default(self, config_path):
        config = json.loads(config_path.read_text())
        driver = build_driver(config, execute=False)
        assert driver.dry_run is True
        assert driver.policy == "fairly"
        assert driver.days_ago == 1
        assert driver.notify_on_failure is True

    def test_overrides(self, config_path):
        config = json.loads(config_path.read_text())
        config["notify_on_failure"] = False
        driver = build_driver(config, execute=True, policy="evenly", days_ago=3)
        assert driver.dry_run is False
        assert driver.policy == "evenly"
        assert driver.days_ago == 3
        assert driver.notify_on_failure is False


# ---------------------------------------------------------------------------
# accounts command
# ---------------------------------------------------------------------------

class TestAccountsCommand:

    def add_args(self, config_path, **overrides):
        values = {
            "--user": USER_ID,
            "--guild": GUILD_ID,
            "--host": "https://acme.atlassian.net",
            "--username": "Dev@Acme.io",
            "--token": "plain-token-12345",
        }
        values.update(overrides)
        args = ["--config", str(config_path), "accounts", "add"]
        for key, value in values.items():
            args += [key, value]
        return args

    def test_add_pause_resume(self, config_path, capsys):
        assert main(self.add_args(config_path)) == 0

        store = load_store(config_path)
        account = store.get(USER_ID, GUILD_ID)
        assert account.host == "acme.atlassian.net"
        assert account.username == "dev@acme.io"
        assert account.daily_hours == 8
        assert store.cipher.decrypt(account.token) == "plain-token-12345"

        base = ["--config", str(config_path), "accounts"]
        assert main(base + ["pause", "--user", USER_ID, "--guild", GUILD_ID]) == 0
        assert store.list_enabled() == []
        assert main(base + ["resume", "--user", USER_ID, "--guild", GUILD_ID]) == 0
        assert len(store.list_enabled()) == 1

        assert main(base + ["list"]) == 0
        out = capsys.readouterr().out
        assert f"{USER_ID}@{GUILD_ID}" in out
        assert "plain-token-12345" not in out

    def test_add_rejects_invalid_field(self, config_path, capsys):
        assert main(self.add_args(config_path, **{"--username": "nope"})) == 1
        assert "Email" in capsys.readouterr().out
        assert load_store(config_path).list_all() == []

    def test_pause_unknown_account(self, config_path, capsys):
        args = ["--config", str(config_path), "accounts", "pause", "--user", USER_ID, "--guild", GUILD_ID]
        assert main(args) == 1
        assert "No account" in capsys.readouterr().out


class TestMain:

    def test_missing_config(self, tmp_path):
        assert main(["--config", str(tmp_path / "missing.json"), "run"]) == 1

    def test_invalid_days_ago(self, config_path, capsys):
        assert main(["--config", str(config_path), "run", "--days-ago", "0"]) == 1
        assert "days-ago" in capsys.readouterr().out
