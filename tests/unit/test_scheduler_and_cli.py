import logging
from pathlib import Path

import pytest

from linkdrip.adapters.periodic_runner import PeriodicRunner
from linkdrip.app_shell import cli
from linkdrip.app_shell.config import validate_ops_rules
from linkdrip.rules.models import OpsRules

ROOT = Path(__file__).resolve().parents[2]


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestPeriodicRunner:
    def test_tasks_run_on_their_interval(self):
        clock = FakeMonotonic()
        runner = PeriodicRunner(monotonic=clock)
        calls: list[str] = []
        runner.add_task("fast", 10, lambda: calls.append("fast"), run_immediately=True)
        runner.add_task("slow", 60, lambda: calls.append("slow"))

        assert runner.run_due() == 1
        assert calls == ["fast"]

        clock.now += 10
        runner.run_due()
        assert calls == ["fast", "fast"]

        clock.now += 50
        runner.run_due()
        assert calls == ["fast", "fast", "fast", "slow"]

    def test_failing_task_is_counted_and_retried(self, caplog):
        clock = FakeMonotonic()
        runner = PeriodicRunner(monotonic=clock)

        def boom() -> None:
            raise RuntimeError("down")

        task = runner.add_task("flaky", 5, boom, run_immediately=True)
        with caplog.at_level(logging.ERROR):
            runner.run_due()
        assert task.failures == 1
        assert "Periodic task flaky failed" in caplog.text

        clock.now += 5
        runner.run_due()
        assert task.failures == 2
        assert task.runs == 0

    def test_start_and_stop(self):
        runner = PeriodicRunner(tick_seconds=0.01)
        runner.start()
        assert runner.is_running
        runner.stop()
        assert not runner.is_running
        assert runner.wait(0) is True


class TestCli:
    def test_crawl_arguments(self):
        args = cli.build_parser().parse_args(["crawl", "directory", "https://a.com", "b.com"])
        assert args.command == "crawl"
        assert args.job_type == "directory"
        assert args.urls == ["https://a.com", "b.com"]

    def test_crawl_rejects_unknown_type(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["crawl", "podcast", "https://a.com"])

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_every_command_has_a_handler(self):
        parser = cli.build_parser()
        for command in cli.HANDLERS:
            argv = [command] if command != "crawl" else [command, "all", "https://a.com"]
            assert parser.parse_args(argv).command == command

    def test_migrate(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(cli, "DATA_DIR", str(tmp_path / "data"))
        monkeypatch.setattr(cli, "DB_PATH", str(tmp_path / "data" / "linkdrip.db"))
        monkeypatch.setattr(cli, "MIGRATIONS_DIR", str(ROOT / "migrations"))

        cli.main(["migrate"])
        assert "Applied 2 migration(s)." in capsys.readouterr().out

        cli.main(["migrate"])
        assert "Applied 0 migration(s)." in capsys.readouterr().out

    def test_cleanup_jobs_uses_context(self, ctx, monkeypatch, capsys):
        monkeypatch.setattr(cli, "get_context", lambda: ctx)
        cli.main(["cleanup-jobs"])
        assert "Found 0 stalled jobs: 0 cleaned, 0 failed." in capsys.readouterr().out

    def test_scheduler_intervals_come_from_rules(self, ctx):
        runner = cli.build_runner(ctx)
        intervals = {t.name: t.interval_seconds for t in runner.tasks}
        assert intervals == {"discovery": 86400, "maintenance": 900, "refresh": 86400}


class TestOpsConfig:
    def test_missing_required_env_exits(self, rules, monkeypatch):
        monkeypatch.delenv("LINKDRIP_REQUIRED_FOR_TEST", raising=False)
        strict = rules.model_copy(
            update={"ops": OpsRules(required_env=["LINKDRIP_REQUIRED_FOR_TEST"])}
        )
        with pytest.raises(SystemExit):
            validate_ops_rules(strict, ROOT)

    def test_present_env_passes(self, rules, monkeypatch):
        monkeypatch.setenv("LINKDRIP_REQUIRED_FOR_TEST", "1")
        strict = rules.model_copy(
            update={"ops": OpsRules(required_env=["LINKDRIP_REQUIRED_FOR_TEST"])}
        )
        validate_ops_rules(strict, ROOT)
