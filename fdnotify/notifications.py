"""
Client of the ``org.freedesktop.Notifications`` interface.

    client = Notifications(channel)
    caps = client.discover()
    actions = Actions().add("ok", "OK") if "actions" in caps else Actions()
    nid = client.open(Request("Backup done", actions=actions))
    client.subscribe(nid, on_action=lambda nid, action: print(action))

See https://specifications.freedesktop.org/notification-spec/latest/
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import NamedTuple

from .actions import Actions
from .capabilities import Capabilities
from .correlator import SignalCorrelator
from .errors import ProtocolViolation
from .hints import Hints
from .variant import Tag, encode

log = logging.getLogger(__name__)

# expire_timeout values with a special meaning
EXPIRES_DEFAULT = -1
EXPIRES_NEVER = 0


class ServerInformation(NamedTuple):
    name: str
    vendor: str
    version: str
    spec_version: str


@dataclass
class Request:
    """
    Arguments of one ``Notify`` call. *replaces_id* 0 asks for a new
    notification, the id of an open one replaces it in place.
    """

    summary: str
    body: str = ""
    app_name: str = ""
    app_icon: str = ""
    replaces_id: int = 0
    actions: Actions = field(default_factory=Actions)
    hints: Hints = field(default_factory=Hints)
    timeout_ms: int = EXPIRES_DEFAULT

    def to_args(self):
        """The eight positional arguments of ``Notify``, in order."""
        return (
            encode(self.app_name, Tag.STR).value,
            encode(self.replaces_id, Tag.UINT32).value,
            encode(self.app_icon, Tag.STR).value,
            encode(self.summary, Tag.STR).value,
            encode(self.body, Tag.STR).value,
            self.actions.flatten(),
            self.hints.to_wire(),
            encode(self.timeout_ms, Tag.INT32).value,
        )


def _single(method, results, tag):
    if len(results) != 1:
        raise ProtocolViolation(f"{method} returned {len(results)} values, expected 1")
    value = results[0]
    try:
        return encode(value, tag).value
    except TypeError:
        raise ProtocolViolation(
            f"{method} returned {type(value).__name__} {value!r}, "
            f"expected {tag.name.lower()}"
        ) from None


class Notifications:
    """
    Calls the notification server through *channel*, a
    :class:`~fdnotify.channel.Channel`. Every call blocks until the server
    answers and raises :exc:`~fdnotify.errors.TransportError` when the bus
    or the server fails it. Nothing is retried: sending ``Notify`` twice
    shows two notifications.
    """

    def __init__(self, channel):
        self._channel = channel
        self._lock = threading.Lock()
        self._correlator = None
        self._watch = None

    @property
    def channel(self):
        return self._channel

    def _call(self, method, *args):
        log.debug("calling %s", method)
        return tuple(self._channel.call(method, *args))

    def open(self, request: Request) -> int:
        """Send *request* and return the id the server assigned to it."""
        nid = _single("Notify", self._call("Notify", *request.to_args()), Tag.UINT32)
        log.debug("notification %d opened", nid)
        return nid

    def notify(self, summary, body="", *, app_name="", app_icon="",
               replaces_id=0, actions=None, hints=None,
               timeout_ms=EXPIRES_DEFAULT) -> int:
        """
        Shortcut for :meth:`open`. *actions* may be an :class:`Actions` or a
        sequence of ``(identifier, text)`` pairs.
        """
        if actions is None:
            actions = Actions()
        elif not isinstance(actions, Actions):
            actions = Actions(actions)
        return self.open(Request(
            summary, body, app_name, app_icon, replaces_id, actions,
            hints if hints is not None else Hints(), timeout_ms,
        ))

    def close(self, nid):
        """Ask the server to close notification *nid*."""
        self._call("CloseNotification", encode(nid, Tag.UINT32).value)

    def discover(self) -> Capabilities:
        """Ask the server for the optional features it supports."""
        results = self._call("GetCapabilities")
        if len(results) != 1:
            raise ProtocolViolation(f"GetCapabilities returned {len(results)} values, expected 1")
        try:
            tokens = encode(results[0], Tag.STR_ARRAY).value
        except TypeError:
            raise ProtocolViolation(
                f"GetCapabilities returned {results[0]!r}, expected a string array"
            ) from None
        return Capabilities(tokens)

    get_capabilities = discover

    def get_server_information(self) -> ServerInformation:
        results = self._call("GetServerInformation")
        if len(results) != 4 or not all(isinstance(v, str) for v in results):
            raise ProtocolViolation(
                f"GetServerInformation returned {results!r}, expected four strings"
            )
        return ServerInformation(*(str(v) for v in results))

    def inhibit(self, desktop_entry, reason, hints=None) -> int:
        """
        Ask the server to hold back notifications until :meth:`release` is
        called with the returned cookie.
        """
        hints = hints if hints is not None else Hints()
        results = self._call(
            "Inhibit",
            encode(desktop_entry, Tag.STR).value,
            encode(reason, Tag.STR).value,
            hints.to_wire(),
        )
        return _single("Inhibit", results, Tag.UINT32)

    def release(self, cookie):
        self._call("UnInhibit", encode(cookie, Tag.UINT32).value)

    @contextmanager
    def inhibited(self, desktop_entry, reason, hints=None):
        cookie = self.inhibit(desktop_entry, reason, hints)
        try:
            yield cookie
        finally:
            self.release(cookie)

    @property
    def signals(self) -> SignalCorrelator:
        """
        Correlator fed with the signals of this client's channel, created
        on first use.
        """
        with self._lock:
            if self._correlator is None:
                correlator = SignalCorrelator()
                self._watch = correlator.watch(self._channel)
                self._correlator = correlator
            return self._correlator

    def subscribe(self, nid, **handlers):
        """Shortcut for ``self.signals.register(nid, **handlers)``."""
        return self.signals.register(nid, **handlers)

    def unwatch(self):
        """Stop listening to the channel's signals."""
        with self._lock:
            watch, self._watch = self._watch, None
            self._correlator = None
        if watch is not None:
            watch.remove()
