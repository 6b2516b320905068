"""
Reply validators for the command catalog.

The node has no structured success indicator: depending on the command a
reply is good if it carries some field, if its `Status` text starts with a
known phrase, or if its `Success` flag is set. Each rule is a small
predicate object so the dispatcher never has to know about any of them.
"""

from __future__ import annotations
from typing import Any, Dict

from shared.errors import UnexpectedReplyError

UNEXPECTED_REPLY = "Unexpected reply from server"


class ReplyValidator:
    """Predicate over a raw reply; calling it raises if the reply is rejected."""

    def check(self, reply: Any) -> bool:
        raise NotImplementedError

    def failure_message(self, reply: Any) -> str:
        return UNEXPECTED_REPLY

    def __call__(self, reply: Any) -> None:
        if not self.check(reply):
            raise UnexpectedReplyError(self.failure_message(reply), reply)


class HasField(ReplyValidator):
    def __init__(self, *names: str) -> None:
        self.names = names

    def check(self, reply: Any) -> bool:
        return isinstance(reply, dict) and all(name in reply for name in self.names)

    def __repr__(self) -> str:
        return f"HasField({', '.join(self.names)})"


class _StatusValidator(ReplyValidator):
    def failure_message(self, reply: Any) -> str:
        return f"{UNEXPECTED_REPLY}: {_status(reply)}"


class StatusPrefix(_StatusValidator):
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def check(self, reply: Any) -> bool:
        status = _status(reply)
        return isinstance(status, str) and status.startswith(self.prefix)

    def __repr__(self) -> str:
        return f"StatusPrefix({self.prefix!r})"


class StatusEquals(_StatusValidator):
    def __init__(self, expected: str) -> None:
        self.expected = expected

    def check(self, reply: Any) -> bool:
        return _status(reply) == self.expected

    def __repr__(self) -> str:
        return f"StatusEquals({self.expected!r})"


class SuccessFlag(ReplyValidator):
    def check(self, reply: Any) -> bool:
        return isinstance(reply, dict) and reply.get("Success") is True

    def failure_message(self, reply: Any) -> str:
        if isinstance(reply, dict) and "Success" in reply:
            return "Server returned success=false"
        return UNEXPECTED_REPLY

    def __repr__(self) -> str:
        return "SuccessFlag()"


def _status(reply: Any) -> Any:
    if isinstance(reply, dict):
        return reply.get("Status")
    return None


def has_field(*names: str) -> HasField:
    return HasField(*names)


def status_prefix(prefix: str) -> StatusPrefix:
    return StatusPrefix(prefix)


def status_equals(expected: str) -> StatusEquals:
    return StatusEquals(expected)


def success_flag() -> SuccessFlag:
    return SuccessFlag()


def field_or_empty(reply: Dict[str, Any], name: str) -> list:
    """List fields come back as null when empty."""
    value = reply.get(name)
    return [] if value is None else value
