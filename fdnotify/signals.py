"""Signals emitted by the notification server."""

from typing import NamedTuple

from .errors import ProtocolViolation


class CloseReason:
    """
    Usual meanings of the *reason* of :class:`NotificationClosed`. Servers
    do not agree on them, so reasons are reported as received, never
    mapped onto these.
    """

    EXPIRED = 1
    DISMISSED = 2
    CLOSED = 3
    UNDEFINED = 4


class NotificationClosed(NamedTuple):
    id: int
    reason: int


class ActionInvoked(NamedTuple):
    id: int
    action: str


class ActivationToken(NamedTuple):
    id: int
    token: str


class NotificationReplied(NamedTuple):
    """Text typed into an "inline-reply" action (KDE)."""

    id: int
    message: str


# signal name -> (class, D-Bus signature)
SIGNALS = {
    "NotificationClosed": (NotificationClosed, "uu"),
    "ActionInvoked": (ActionInvoked, "us"),
    "ActivationToken": (ActivationToken, "us"),
    "NotificationReplied": (NotificationReplied, "us"),
}


def parse(name, args):
    """
    Build the signal *name* from its positional *args*, as delivered by a
    channel with bus types already converted to Python ones.
    """
    try:
        cls, _ = SIGNALS[name]
    except KeyError:
        raise ProtocolViolation(f"unknown signal {name}") from None
    if len(args) != 2:
        raise ProtocolViolation(f"{name} carries 2 values, got {len(args)}")
    nid, value = args
    if not isinstance(nid, int) or isinstance(nid, bool):
        raise ProtocolViolation(f"{name} id is a {type(nid).__name__}, not an integer")
    if cls is NotificationClosed:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ProtocolViolation(f"{name} reason is a {type(value).__name__}")
    elif not isinstance(value, str):
        raise ProtocolViolation(f"{name} payload is a {type(value).__name__}, not a string")
    if cls is NotificationClosed:
        return cls(int(nid), int(value))
    return cls(int(nid), str(value))
