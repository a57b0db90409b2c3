"""Tests for the FlatcRunner facade."""

import io
import logging
from unittest.mock import MagicMock, patch

import pytest

from flatcrunner.errors import EngineInvocationError, RunnerDestroyedError
from flatcrunner.runner import ErrorLogEntry, FlatcRunner, create_runner, release_engine

from .conftest import FakeFlatc, MONSTER_JSON


class TestLifecycle:
    def test_create_runner_starts_engine(self, fake_factory, engines):
        runner = create_runner(engine_factory=fake_factory)
        assert len(engines) == 1
        assert FakeFlatc.live == 1
        assert not runner.destroyed
        runner.destroy()
        assert FakeFlatc.live == 0

    def test_default_factory_from_config(self, config):
        with patch("flatcrunner.runner.subprocess_engine_factory") as factory:
            runner = FlatcRunner(config)
        factory.assert_called_once_with(config)
        assert runner.engine is factory.return_value.return_value

    def test_destroy_is_idempotent(self, runner, monster_schema, engines):
        runner.encode(monster_schema, MONSTER_JSON)
        result = runner.destroy()
        assert result.ok
        assert runner.destroyed
        assert engines[0].closed
        assert engines[0].fs.readdir("/") == []
        assert runner.destroy().removed == []

    def test_use_after_destroy(self, runner, monster_schema):
        runner.destroy()
        with pytest.raises(RunnerDestroyedError):
            runner.encode(monster_schema, MONSTER_JSON)
        with pytest.raises(RunnerDestroyedError):
            runner.list_files()
        with pytest.raises(RunnerDestroyedError):
            runner.version()

    def test_context_manager(self, fake_factory):
        with FlatcRunner(engine_factory=fake_factory) as runner:
            assert FakeFlatc.live == 1
        assert runner.destroyed
        assert FakeFlatc.live == 0

    def test_repr(self, runner):
        assert repr(runner) == "FlatcRunner(engine=FakeFlatc, live)"
        runner.destroy()
        assert "destroyed" in repr(runner)


class TestReleaseEngine:
    def test_failures_are_collected(self):
        engine = MagicMock()
        engine.close.side_effect = OSError("busy")
        bridge = MagicMock()
        bridge.teardown.return_value.failed = []

        result = release_engine(engine, bridge)

        engine.close_streams.assert_called_once()
        assert result.failed[0][0] == "close"

    def test_destroy_never_raises(self, runner, engines):
        engines[0].close = MagicMock(side_effect=RuntimeError("stuck"))
        result = runner.destroy()
        assert not result.ok
        assert runner.destroyed


class TestCommands:
    def test_version_and_help(self, runner):
        assert runner.version() == "flatc version 25.2.10"
        assert runner.help().startswith("Usage: flatc")

    def test_run_command(self, runner):
        result = runner.run_command(["--version"])
        assert result.ok
        assert result.stdout == "flatc version 25.2.10"

    def test_run_command_failure_is_returned(self, runner):
        result = runner.run_command(["-I", "/nowhere", "/a.fbs"])
        assert result.exit_code == 1
        assert "include directory not found" in result.stderr
        assert runner.get_errors() == []

    def test_mount_and_list(self, runner):
        runner.mount_file("/b/two.txt", "2")
        runner.mount_files([("/a/one.txt", b"1"), ("/b/two.txt", "22")])
        assert runner.list_files() == ["/a/one.txt", "/b/two.txt"]
        assert runner.list_files("/b") == ["/b/two.txt"]
        assert runner.fs.read_file("/b/two.txt") == b"22"

    def test_streams_receive_engine_output(self, fake_factory):
        out = io.StringIO()
        with FlatcRunner(engine_factory=fake_factory, stdout_stream=out) as runner:
            runner.version()
        assert out.getvalue() == "flatc version 25.2.10\n"


class TestErrorLog:
    def test_failures_are_logged_and_reraised(self, runner, monster_schema, caplog):
        with caplog.at_level(logging.WARNING, logger="flatcrunner.runner"):
            with pytest.raises(EngineInvocationError):
                runner.encode(monster_schema, "{oops")
        errors = runner.get_errors()
        assert len(errors) == 1
        entry = errors[0]
        assert isinstance(entry, ErrorLogEntry)
        assert entry.method == "encode"
        assert "exit code 1" in entry.message
        assert "EngineInvocationError" in entry.trace
        assert set(entry.to_dict()) == {"timestamp", "method", "message", "trace"}
        assert "encode failed" in caplog.text

    def test_log_is_append_only(self, runner, monster_schema):
        for _ in range(3):
            with pytest.raises(EngineInvocationError):
                runner.encode(monster_schema, "{oops")
        runner.encode(monster_schema, MONSTER_JSON)
        assert [e.method for e in runner.get_errors()] == ["encode"] * 3

    def test_engine_fault_propagates_unwrapped(self, runner):
        schema = {"entry": "/s/bad.fbs", "files": {"/s/bad.fbs": "// ABORT\ntable A {}"}}
        with pytest.raises(RuntimeError, match="engine aborted") as exc_info:
            runner.encode(schema, "{}")
        assert not isinstance(exc_info.value, EngineInvocationError)
        assert runner.get_errors()[0].message == "engine aborted: invariant violated"
        assert runner.list_files() == ["/s/bad.fbs"]

    def test_runner_survives_failures(self, runner, monster_schema):
        with pytest.raises(EngineInvocationError):
            runner.encode(monster_schema, "{oops")
        assert runner.encode(monster_schema, MONSTER_JSON)
