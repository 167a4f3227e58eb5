"""Tests for uncaught error handling and assertions."""

from __future__ import annotations

import sys
from unittest.mock import Mock

import pytest

from tests.utils import FakeErrorTrap
from windowsession import Environment
from windowsession.collaborators import Collaborators
from windowsession.environment import DEV_TOOLS_SCRIPT
from windowsession.errors import AssertionFailure, ErrorEvent, MissingPathsError, WillThrowErrorEvent
from windowsession.traps import ExceptHookErrorTrap


class TestUncaughtErrors:
    def test_will_and_did_throw_error(self, env: Environment, collaborators: Collaborators):
        will = Mock()
        did = Mock()
        env.on_will_throw_error(will)
        env.on_did_throw_error(did)
        error = RuntimeError("message")

        collaborators.error_trap.trigger(error)

        will.assert_called_once()
        event = will.call_args.args[0]
        assert isinstance(event, WillThrowErrorEvent)
        assert (event.message, event.url, event.line, event.column) == ("message", "abc", 2, 3)
        assert event.original_error is error
        did.assert_called_once_with(
            ErrorEvent(message="message", url="abc", line=2, column=3, original_error=error)
        )

    def test_default_opens_dev_tools(self, env: Environment, collaborators: Collaborators):
        collaborators.error_trap.trigger(RuntimeError("message"))

        env.window.open_dev_tools.assert_called_once_with()
        env.window.execute_in_dev_tools.assert_called_once_with(DEV_TOOLS_SCRIPT)

    def test_prevent_default_keeps_dev_tools_closed(
        self, env: Environment, collaborators: Collaborators
    ):
        did = Mock()
        env.on_will_throw_error(lambda event: event.prevent_default())
        env.on_did_throw_error(did)

        collaborators.error_trap.trigger(RuntimeError("message"))

        env.window.open_dev_tools.assert_not_called()
        env.window.execute_in_dev_tools.assert_not_called()
        did.assert_called_once()

    def test_last_uncaught_error(self, env: Environment):
        env.handle_uncaught_error("boom", "file.py", 10)
        assert env.last_uncaught_error == ErrorEvent(message="boom", url="file.py", line=10)

    def test_subscribers_released_on_destroy(self, env: Environment, collaborators: Collaborators):
        trap = collaborators.error_trap
        env.on_did_throw_error(Mock())
        assert env.emitter.listener_count("did-throw-error") == 1

        env.destroy()

        assert env.emitter.listener_count("did-throw-error") == 0
        assert trap.uninstall_count == 1
        assert trap.handler is None

    def test_disposed_subscriptions_are_not_retained(self, env: Environment):
        retained = len(env.disposables)

        for _ in range(5):
            env.on_did_throw_error(Mock()).dispose()
            env.on_did_fail_assertion(Mock()).dispose()

        assert len(env.disposables) == retained
        assert env.emitter.listener_count("did-throw-error") == 0

    def test_disposed_subscription_not_called(self, env: Environment):
        did = Mock()
        env.on_did_throw_error(did).dispose()
        env.handle_uncaught_error("boom")
        did.assert_not_called()


class TestAssert:
    @pytest.fixture
    def failures(self, env: Environment) -> list[AssertionFailure]:
        received: list[AssertionFailure] = []
        env.on_did_fail_assertion(received.append)
        return received

    def test_failed_assertion_notifies(self, env: Environment, failures):
        assert env.assert_(False, "a == b") is False

        assert len(failures) == 1
        error = failures[0]
        assert error.message == "Assertion failed: a == b"
        assert str(error) == "Assertion failed: a == b"
        assert "test_errors.py" in error.stack

    def test_callback_receives_error(self, env: Environment, failures):
        callback = Mock()

        env.assert_(False, "a == b", callback)

        callback.assert_called_once_with(failures[0])
        assert failures[0].metadata is None

    def test_metadata_is_attached(self, env: Environment, failures):
        env.assert_(False, "a == b", {"foo": "bar"})
        assert failures[0].metadata == {"foo": "bar"}

    def test_passing_assertion_is_silent(self, env: Environment, failures):
        assert env.assert_(True, "a == b") is True
        assert failures == []

    def test_beta_build_does_not_raise(self, collaborators: Collaborators, config):
        env = Environment(collaborators, config=config, version="1.5.0-beta10")
        assert env.assert_(False, "a == b") is False
        env.destroy()

    def test_dev_build_raises(self, collaborators: Collaborators, config):
        env = Environment(collaborators, config=config, version="1.7.0-dev-5340c91")
        failures = []
        env.on_did_fail_assertion(failures.append)

        with pytest.raises(AssertionFailure, match="Assertion failed: a == b") as exc_info:
            env.assert_(False, "a == b")

        assert failures == [exc_info.value]
        env.destroy()


class TestExceptHookErrorTrap:
    def test_install_and_uninstall(self, monkeypatch: pytest.MonkeyPatch):
        previous = Mock()
        monkeypatch.setattr(sys, "excepthook", previous)
        trap = ExceptHookErrorTrap()

        trap.install(Mock())
        assert trap.installed
        assert sys.excepthook is not previous

        trap.uninstall()
        assert not trap.installed
        assert sys.excepthook is previous

    def test_routes_exception_to_handler(self, monkeypatch: pytest.MonkeyPatch):
        previous = Mock()
        monkeypatch.setattr(sys, "excepthook", previous)
        handler = Mock()
        trap = ExceptHookErrorTrap()
        trap.install(handler)
        try:
            try:
                raise ValueError("bad value")
            except ValueError as e:
                sys.excepthook(type(e), e, e.__traceback__)
        finally:
            trap.uninstall()

        message, url, line, column, error = handler.call_args.args
        assert message == "ValueError: bad value"
        assert url.endswith("test_errors.py")
        assert isinstance(line, int)
        assert isinstance(error, ValueError)
        previous.assert_not_called()

    def test_keyboard_interrupt_passes_through(self, monkeypatch: pytest.MonkeyPatch):
        previous = Mock()
        monkeypatch.setattr(sys, "excepthook", previous)
        handler = Mock()
        trap = ExceptHookErrorTrap()
        trap.install(handler)
        try:
            error = KeyboardInterrupt()
            sys.excepthook(KeyboardInterrupt, error, None)
        finally:
            trap.uninstall()

        handler.assert_not_called()
        previous.assert_called_once_with(KeyboardInterrupt, error, None)

    def test_failing_handler_falls_back(self, monkeypatch: pytest.MonkeyPatch):
        previous = Mock()
        monkeypatch.setattr(sys, "excepthook", previous)
        trap = ExceptHookErrorTrap()
        trap.install(Mock(side_effect=RuntimeError("handler broke")))
        try:
            error = ValueError("bad")
            sys.excepthook(ValueError, error, None)
        finally:
            trap.uninstall()

        previous.assert_called_once_with(ValueError, error, None)

    def test_environment_installs_default_trap(self, collaborators: Collaborators, config, monkeypatch):
        previous = Mock()
        monkeypatch.setattr(sys, "excepthook", previous)
        collaborators.error_trap = None
        env = Environment(collaborators, config=config)
        env.initialize()
        did = Mock()
        env.on_did_throw_error(did)

        sys.excepthook(RuntimeError, RuntimeError("late"), None)
        did.assert_called_once()

        env.destroy()
        assert sys.excepthook is previous


class TestErrorTypes:
    def test_missing_paths_error(self):
        error = MissingPathsError(["/a", "/b"])
        assert error.missing_project_paths == ["/a", "/b"]
        assert "/a" in str(error)

    def test_missing_paths_error_requires_paths(self):
        with pytest.raises(ValueError):
            MissingPathsError([])

    def test_initialize_installs_trap_once(self, env: Environment, collaborators: Collaborators):
        assert isinstance(collaborators.error_trap, FakeErrorTrap)
        env.initialize()
        assert collaborators.error_trap.install_count == 1
