import pytest

from fdnotify.channel import Channel, SignalReceiver


class FakeChannel(Channel):
    """Records calls, answers them from ``replies``, and emits signals on demand."""

    def __init__(self, replies=None):
        self.calls = []
        self.replies = dict(replies or {})
        self.receivers = {}

    def call(self, method, *args):
        self.calls.append((method, args))
        reply = self.replies.get(method, ())
        if isinstance(reply, Exception):
            raise reply
        return reply

    def subscribe(self, signal, handler):
        receiver = SignalReceiver(signal, handler, self._remove)
        self.receivers.setdefault(signal, []).append(receiver)
        return receiver

    def _remove(self, receiver):
        self.receivers[receiver.signal].remove(receiver)

    def emit(self, signal, *args):
        for receiver in list(self.receivers.get(signal, ())):
            receiver.handler(*args)


@pytest.fixture
def channel():
    return FakeChannel()
