"""Unit tests for CancellationToken."""

from __future__ import annotations

import threading

import pytest

from fileshare_cli.cancellation import CancellationToken


class TestCancellationToken:
    """Tests for the one-shot cancellation signal."""

    @pytest.mark.unit
    def test_starts_uncancelled(self) -> None:
        assert CancellationToken().cancelled is False

    @pytest.mark.unit
    def test_cancel_runs_callbacks_once(self) -> None:
        token = CancellationToken()
        calls: list[str] = []
        token.register(lambda: calls.append("a"))
        token.register(lambda: calls.append("b"))

        token.cancel()
        token.cancel()

        assert token.cancelled is True
        assert calls == ["a", "b"]

    @pytest.mark.unit
    def test_register_after_cancel_runs_immediately(self) -> None:
        token = CancellationToken()
        token.cancel()
        calls: list[int] = []

        unregister = token.register(lambda: calls.append(1))
        unregister()

        assert calls == [1]

    @pytest.mark.unit
    def test_unregistered_callback_not_run(self) -> None:
        token = CancellationToken()
        calls: list[int] = []
        unregister = token.register(lambda: calls.append(1))

        unregister()
        token.cancel()

        assert calls == []

    @pytest.mark.unit
    def test_cancel_from_another_thread(self) -> None:
        token = CancellationToken()
        fired = threading.Event()
        token.register(fired.set)

        thread = threading.Thread(target=token.cancel)
        thread.start()
        thread.join(timeout=5)

        assert fired.is_set()
        assert token.cancelled is True
