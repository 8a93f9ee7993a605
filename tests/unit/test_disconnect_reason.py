"""Testes da classificação de motivos de desconexão."""

from __future__ import annotations

import pytest

from zapgate.domain.disconnect import DisconnectReason, classify_disconnect


class _BoomError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"status {status_code}")
        self.status_code = status_code


class TestClassifyDisconnect:
    """Mapeamento causa bruta -> DisconnectReason."""

    @pytest.mark.parametrize(
        ("cause", "expected"),
        [
            (401, DisconnectReason.LOGGED_OUT),
            (408, DisconnectReason.TIMEOUT),
            (428, DisconnectReason.NETWORK_ERROR),
            (515, DisconnectReason.NETWORK_ERROR),
            (440, DisconnectReason.PROVIDER_ERROR),
            (500, DisconnectReason.PROVIDER_ERROR),
        ],
    )
    def test_status_codes(self, cause: int, expected: DisconnectReason) -> None:
        assert classify_disconnect(cause) is expected

    def test_exception_with_status_code(self) -> None:
        assert classify_disconnect(_BoomError(401)) is DisconnectReason.LOGGED_OUT

    @pytest.mark.parametrize(
        ("cause", "expected"),
        [
            ("logged_out", DisconnectReason.LOGGED_OUT),
            ("Logged-Out", DisconnectReason.LOGGED_OUT),
            ("timed out", DisconnectReason.TIMEOUT),
            ("connection_lost", DisconnectReason.NETWORK_ERROR),
            ("bad_session", DisconnectReason.PROVIDER_ERROR),
        ],
    )
    def test_text_causes(self, cause: str, expected: DisconnectReason) -> None:
        assert classify_disconnect(cause) is expected

    def test_python_exceptions(self) -> None:
        assert classify_disconnect(TimeoutError()) is DisconnectReason.TIMEOUT
        assert classify_disconnect(ConnectionResetError()) is DisconnectReason.NETWORK_ERROR

    def test_reason_passes_through(self) -> None:
        assert classify_disconnect(DisconnectReason.TIMEOUT) is DisconnectReason.TIMEOUT

    @pytest.mark.parametrize("cause", [None, 999, "weird", object(), True, ValueError("x")])
    def test_unknown_cause_is_recoverable(self, cause: object) -> None:
        """Causa desconhecida nunca vira logout."""
        reason = classify_disconnect(cause)
        assert reason is DisconnectReason.NETWORK_ERROR
        assert reason.is_terminal is False

    def test_only_logout_is_terminal(self) -> None:
        terminal = [reason for reason in DisconnectReason if reason.is_terminal]
        assert terminal == [DisconnectReason.LOGGED_OUT]
