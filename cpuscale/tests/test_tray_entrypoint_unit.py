from __future__ import annotations

import cpuscale.tray.entrypoint as entry


def test_main_happy_path_wires_startup_and_runs(monkeypatch) -> None:
    calls = {"logging": 0, "lock": 0, "backend": 0, "tray_run": 0, "exit": []}

    monkeypatch.setattr(entry, "configure_logging", lambda: calls.__setitem__("logging", calls["logging"] + 1))
    monkeypatch.setattr(entry, "acquire_single_instance_or_exit", lambda: calls.__setitem__("lock", calls["lock"] + 1))

    def _backend():
        calls["backend"] += 1
        return "dispatcher", "client"

    class _Tray:
        def __init__(self, *, client, dispatcher):
            assert (client, dispatcher) == ("client", "dispatcher")

        def run(self):
            calls["tray_run"] += 1

    monkeypatch.setattr(entry, "start_backend", _backend)
    monkeypatch.setattr(entry, "CpuScaleTray", _Tray)
    monkeypatch.setattr(entry.sys, "exit", lambda code: calls["exit"].append(code))

    entry.main()

    assert calls == {"logging": 1, "lock": 1, "backend": 1, "tray_run": 1, "exit": []}


def test_main_keyboard_interrupt_exits_0(monkeypatch) -> None:
    exits: list[int] = []

    monkeypatch.setattr(entry, "configure_logging", lambda: None)

    def _lock():
        raise KeyboardInterrupt()

    monkeypatch.setattr(entry, "acquire_single_instance_or_exit", _lock)
    monkeypatch.setattr(entry.sys, "exit", lambda code: exits.append(code))

    entry.main()

    assert exits == [0]


def test_main_unhandled_exception_exits_1(monkeypatch) -> None:
    exits: list[int] = []

    monkeypatch.setattr(entry, "configure_logging", lambda: None)
    monkeypatch.setattr(entry, "acquire_single_instance_or_exit", lambda: None)

    def _backend():
        raise RuntimeError("no system bus")

    monkeypatch.setattr(entry, "start_backend", _backend)
    monkeypatch.setattr(entry.sys, "exit", lambda code: exits.append(code))

    entry.main()

    assert exits == [1]
