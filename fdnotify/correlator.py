"""
Routing of server signals to the notifications that caused them.

The notification server broadcasts its signals to every client on the bus,
so a client sees ``NotificationClosed`` and ``ActionInvoked`` for other
applications' notifications too. :class:`SignalCorrelator` keeps the ids a
caller registered and hands each signal to the subscriptions of its id.
"""

import enum
import logging
import threading

from . import signals
from .errors import ProtocolViolation

log = logging.getLogger(__name__)


class State(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class Subscription:
    """
    Interest in one notification id. Created by
    :meth:`SignalCorrelator.register`.

    ``NotificationClosed`` moves it from OPEN to CLOSED and records the
    reason. Actions, activation tokens and replies are delivered in either
    state, as they can arrive after the close.
    """

    def __init__(self, correlator, nid, on_closed=None, on_action=None,
                 on_activation_token=None, on_reply=None, on_signal=None):
        self.id = nid
        self.state = State.OPEN
        self.reason = None
        self._correlator = correlator
        self._closed = threading.Event()
        self._active = True
        self._handlers = {
            signals.NotificationClosed: on_closed,
            signals.ActionInvoked: on_action,
            signals.ActivationToken: on_activation_token,
            signals.NotificationReplied: on_reply,
        }
        self._on_signal = on_signal

    @property
    def active(self):
        return self._active

    def cancel(self):
        """Stop receiving signals. Safe to call from inside a handler."""
        self._correlator.unregister(self)

    def wait_closed(self, timeout=None):
        """
        Block until the notification is closed or *timeout* seconds have
        passed. Returns whether it was closed.
        """
        return self._closed.wait(timeout)

    def _transition(self, signal):
        # called with the correlator lock held
        if isinstance(signal, signals.NotificationClosed):
            self.state = State.CLOSED
            self.reason = signal.reason

    def _deliver(self, signal):
        if isinstance(signal, signals.NotificationClosed):
            self._closed.set()
        if not self._active:
            return
        handler = self._handlers.get(type(signal))
        if handler is not None:
            handler(*signal)
        if self._on_signal is not None:
            self._on_signal(signal)

    def __repr__(self):
        return f"<Subscription id={self.id} {self.state.value}>"


class SignalCorrelator:
    """
    Dispatches notification signals to :class:`Subscription` objects by
    notification id. Signals for ids nobody registered are ignored.

    Registration may happen on any thread while signals are being delivered
    on the transport's thread. Handlers run outside the internal lock, in
    the order the transport delivers the signals.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._subscriptions = {}

    def register(self, nid, **handlers) -> Subscription:
        """
        Start routing the signals of notification *nid*. *handlers* are any
        of ``on_closed(id, reason)``, ``on_action(id, action)``,
        ``on_activation_token(id, token)``, ``on_reply(id, message)`` and
        ``on_signal(signal)``, which receives every signal object.
        """
        subscription = Subscription(self, nid, **handlers)
        with self._lock:
            self._subscriptions.setdefault(nid, []).append(subscription)
        log.debug("watching notification %d", nid)
        return subscription

    def unregister(self, subscription):
        with self._lock:
            subscription._active = False
            subs = self._subscriptions.get(subscription.id, [])
            if subscription in subs:
                subs.remove(subscription)
            if not subs:
                self._subscriptions.pop(subscription.id, None)

    def state(self, nid):
        """State of *nid*, or None when it is not registered."""
        with self._lock:
            subs = self._subscriptions.get(nid)
            if not subs:
                return None
            if all(sub.state is State.CLOSED for sub in subs):
                return State.CLOSED
            return State.OPEN

    def watched(self):
        with self._lock:
            return sorted(self._subscriptions)

    def dispatch(self, signal):
        """Hand *signal* to the subscriptions of its id."""
        with self._lock:
            subs = list(self._subscriptions.get(signal.id, ()))
            for sub in subs:
                sub._transition(signal)
        for sub in subs:
            sub._deliver(signal)

    def receive(self, name, *args):
        """Entry point for a raw signal *name* with positional *args*."""
        try:
            signal = signals.parse(name, args)
        except ProtocolViolation:
            log.warning("dropping malformed %s signal %r", name, args)
            raise
        self.dispatch(signal)

    def watch(self, channel):
        """
        Subscribe to the notification signals of *channel*. Returns an
        object whose ``remove()`` unsubscribes again.
        """
        receivers = [
            channel.subscribe(name, self._receiver(name))
            for name in signals.SIGNALS
        ]
        return _Watch(receivers)

    def _receiver(self, name):
        def receive(*args):
            self.receive(name, *args)
        return receive


class _Watch:
    def __init__(self, receivers):
        self._receivers = receivers

    def remove(self):
        receivers, self._receivers = self._receivers, []
        for receiver in receivers:
            receiver.remove()
