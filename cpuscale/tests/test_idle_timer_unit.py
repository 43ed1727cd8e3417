from __future__ import annotations

from cpuscale.helper.idle import IdleTimer


class _FakeLoop:
    def __init__(self):
        self.next_id = 0
        self.sources: dict[int, tuple[int, object]] = {}
        self.removed: list[int] = []

    def timeout_add(self, seconds, fn):
        self.next_id += 1
        self.sources[self.next_id] = (seconds, fn)
        return self.next_id

    def source_remove(self, source_id):
        self.removed.append(source_id)
        self.sources.pop(source_id, None)

    def fire_all(self):
        for source_id, (_seconds, fn) in list(self.sources.items()):
            if not fn():
                self.sources.pop(source_id, None)


def _timer(loop: _FakeLoop, timeout_s: int, on_expire) -> IdleTimer:
    return IdleTimer(timeout_s, on_expire, timeout_add=loop.timeout_add, source_remove=loop.source_remove)


def test_reset_replaces_pending_source() -> None:
    loop = _FakeLoop()
    timer = _timer(loop, 60, lambda: None)

    timer.reset()
    timer.reset()

    assert loop.removed == [1]
    assert list(loop.sources) == [2]
    assert loop.sources[2][0] == 60
    assert timer.active


def test_expiry_fires_once() -> None:
    loop = _FakeLoop()
    fired: list[int] = []
    timer = _timer(loop, 5, lambda: fired.append(1))

    timer.reset()
    loop.fire_all()
    loop.fire_all()

    assert fired == [1]
    assert not timer.active


def test_zero_timeout_disables() -> None:
    loop = _FakeLoop()
    timer = _timer(loop, 0, lambda: None)

    timer.reset()
    assert not timer.active
    assert loop.sources == {}

    timer.set_timeout(10)
    assert timer.active
    timer.set_timeout(0)
    assert not timer.active
    assert timer.timeout_s == 0


def test_stop_is_idempotent() -> None:
    loop = _FakeLoop()
    timer = _timer(loop, 5, lambda: None)

    timer.stop()
    timer.reset()
    timer.stop()
    timer.stop()

    assert loop.removed == [1]
