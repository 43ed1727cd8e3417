from __future__ import annotations

import pytest

from cpuscale.helper.authorization import AuthorizationGate, parse_check_authorization_reply

ACTION = "io.github.cpuscale.apply-runtime"


class _Authority:
    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: list[tuple[str, str]] = []

    def __call__(self, sender: str, action: str):
        self.calls.append((sender, action))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


def test_parse_reply_structure() -> None:
    assert parse_check_authorization_reply((True, False, {})) == (True, False)
    assert parse_check_authorization_reply((0, 1, {"k": "v"})) == (False, True)
    with pytest.raises(ValueError):
        parse_check_authorization_reply(None)
    with pytest.raises(ValueError):
        parse_check_authorization_reply((True,))


def test_grant_is_cached_per_caller_and_action() -> None:
    authority = _Authority((True, False, {}))
    gate = AuthorizationGate(authority)

    assert gate.authorize(":1.42", ACTION)
    assert gate.authorize(":1.42", ACTION)
    assert authority.calls == [(":1.42", ACTION)]
    assert gate.cached(":1.42", ACTION) is True

    # A different caller is asked separately.
    assert gate.authorize(":1.43", ACTION)
    assert len(authority.calls) == 2


def test_denial_is_not_cached() -> None:
    authority = _Authority((False, False, {}), (True, False, {}))
    gate = AuthorizationGate(authority)

    assert not gate.authorize(":1.7", ACTION)
    assert gate.cached(":1.7", ACTION) is None
    assert gate.authorize(":1.7", ACTION)
    assert len(authority.calls) == 2


def test_challenge_reply_is_not_cached() -> None:
    authority = _Authority((False, True, {}))
    gate = AuthorizationGate(authority)

    assert not gate.authorize(":1.9", ACTION)
    assert not gate.authorize(":1.9", ACTION)
    assert len(authority.calls) == 2


@pytest.mark.parametrize("reply", [RuntimeError("authority unreachable"), "garbage", None])
def test_failures_deny(reply) -> None:
    gate = AuthorizationGate(_Authority(reply))

    assert gate.authorize(":1.5", ACTION) is False
    assert gate.cached(":1.5", ACTION) is None


def test_in_process_caller_is_allowed_without_asking() -> None:
    authority = _Authority((False, False, {}))

    assert AuthorizationGate(authority).authorize(None, ACTION)
    assert authority.calls == []
