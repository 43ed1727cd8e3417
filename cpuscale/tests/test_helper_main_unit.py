from __future__ import annotations

import pytest

import cpuscale.helper.main as helper_main
from cpuscale.helper.constants import DEFAULT_IDLE_TIMEOUT_S


def test_parse_args_defaults(monkeypatch) -> None:
    monkeypatch.delenv("CPUSCALE_HELPER_IDLE_TIMEOUT", raising=False)

    args = helper_main.parse_args([])

    assert args.idle_timeout == DEFAULT_IDLE_TIMEOUT_S
    assert args.debug is False


def test_parse_args_env_and_flag(monkeypatch) -> None:
    monkeypatch.setenv("CPUSCALE_HELPER_IDLE_TIMEOUT", "15")
    assert helper_main.parse_args([]).idle_timeout == 15
    assert helper_main.parse_args(["--idle-timeout", "0", "--debug"]).idle_timeout == 0

    monkeypatch.setenv("CPUSCALE_HELPER_IDLE_TIMEOUT", "soon")
    assert helper_main.parse_args([]).idle_timeout == DEFAULT_IDLE_TIMEOUT_S


def test_negative_timeout_is_clamped() -> None:
    assert helper_main.parse_args(["--idle-timeout", "-5"]).idle_timeout == 0


def test_version_exits_zero(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        helper_main.parse_args(["--version"])
    assert exc.value.code == 0
    assert "cpuscale-helper" in capsys.readouterr().out
