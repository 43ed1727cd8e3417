"""Per-caller authorization with a process-lifetime decision cache."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# (caller_id, action_id) -> raw authority reply
CheckFn = Callable[[str, str], Any]


def parse_check_authorization_reply(reply: Any) -> tuple[bool, bool]:
    """Return ``(is_authorized, is_challenge)`` from a ``(bba{ss})`` reply.

    Raises ValueError for anything that does not look like that structure.
    """

    try:
        is_authorized, is_challenge, _details = reply
    except (TypeError, ValueError) as exc:
        raise ValueError(f"malformed authorization reply: {reply!r}") from exc
    return bool(is_authorized), bool(is_challenge)


class AuthorizationGate:
    """Decides whether a caller may perform an action.

    Grants are cached per ``(caller, action)`` for the life of the process and
    never evicted; callers are transient bus names and the helper exits on idle.
    Denials and challenge replies are not cached.
    """

    def __init__(self, check_fn: CheckFn):
        self._check_fn = check_fn
        self._cache: dict[tuple[str, str], bool] = {}

    def authorize(self, caller_id: Optional[str], action_id: str) -> bool:
        # No transport identity: an in-process call.
        if caller_id is None:
            return True

        key = (str(caller_id), str(action_id))
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            reply = self._check_fn(key[0], key[1])
            is_authorized, is_challenge = parse_check_authorization_reply(reply)
        except Exception as exc:
            logger.warning("Authorization check for %s (%s) failed: %s", key[0], key[1], exc)
            return False

        logger.debug("Authorization for %s (%s): authorized=%s challenge=%s", key[0], key[1], is_authorized, is_challenge)
        if is_authorized and not is_challenge:
            self._cache[key] = True
        return is_authorized

    def cached(self, caller_id: str, action_id: str) -> Optional[bool]:
        return self._cache.get((str(caller_id), str(action_id)))
