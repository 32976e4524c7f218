"""
Channel over dbus-next.

dbus-next is asyncio only, so the channel runs its own event loop on a
daemon thread and submits every call to it. Signal handlers are run one at
a time, in arrival order, on a worker thread of their own, which lets them
make blocking calls on the same channel.
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from dbus_next import Message, MessageType
from dbus_next import Variant as DBusVariant
from dbus_next.aio import MessageBus
from dbus_next.constants import BusType
from dbus_next.errors import DBusError

from .channel import (
    BUS_NAME, INTERFACE, METHODS, OBJECT_PATH, Channel, SignalReceiver,
)
from .errors import TransportError
from .variant import Tag, Variant

log = logging.getLogger(__name__)

_SIMPLE = {
    "b": Tag.BOOL,
    "y": Tag.BYTE,
    "i": Tag.INT32,
    "u": Tag.UINT32,
    "x": Tag.INT64,
    "t": Tag.UINT64,
    "d": Tag.DOUBLE,
    "s": Tag.STR,
    "as": Tag.STR_ARRAY,
    "ay": Tag.BYTES,
}


def _plain(variant):
    if variant.tag is Tag.STRUCT:
        return [_plain(f) for f in variant.value]
    if variant.tag is Tag.STR_ARRAY:
        return list(variant.value)
    if variant.tag is Tag.OPAQUE and isinstance(variant.value, DBusVariant):
        return variant.value.value
    return variant.value


def to_dbus_next(variant: Variant) -> DBusVariant:
    """dbus-next ``Variant`` for a hint :class:`Variant`."""
    if variant.tag is Tag.OPAQUE and isinstance(variant.value, DBusVariant):
        return variant.value
    return DBusVariant(variant.signature, _plain(variant))


def _from_type(sig_type, value):
    signature = sig_type.signature
    if signature in _SIMPLE:
        tag = _SIMPLE[signature]
        if tag is Tag.STR_ARRAY:
            value = tuple(value)
        elif tag is Tag.BYTES:
            value = bytes(value)
        return Variant(tag, value, signature)
    if sig_type.token == "(":
        fields = tuple(_from_type(t, v) for t, v in zip(sig_type.children, value))
        if all(f.tag is not Tag.OPAQUE for f in fields):
            return Variant(Tag.STRUCT, fields, signature)
    return Variant.opaque(DBusVariant(sig_type, value), signature)


def from_dbus_next(variant: DBusVariant) -> Variant:
    """
    :class:`Variant` for a dbus-next ``Variant`` received in an ``a{sv}``
    dictionary. Types outside :class:`Tag` are kept as opaque variants
    wrapping the original.
    """
    return _from_type(variant.type, variant.value)


def _marshal(arg):
    if isinstance(arg, dict):
        return {k: to_dbus_next(v) for k, v in arg.items()}
    return arg


def _unmarshal(value):
    if isinstance(value, dict):
        return {k: from_dbus_next(v) if isinstance(v, DBusVariant) else v
                for k, v in value.items()}
    return value


class AioChannel(Channel):
    """
    Channel on a dbus-next connection to the session bus. *bus* is an
    already connected bus whose coroutines may run on this channel's loop;
    without it the channel connects to *bus_type* itself.
    """

    def __init__(self, bus_type=BusType.SESSION, bus=None):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="fdnotify-dbus", daemon=True
        )
        self._thread.start()
        self._dispatcher = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fdnotify-signals")
        self._lock = threading.Lock()
        self._receivers = {}
        self._matched = set()
        self._stopped = threading.Event()
        if bus is not None:
            bus.add_message_handler(self._on_message)
            self._bus = bus
            return
        try:
            self._bus = self._submit(self._connect(bus_type))
        except BaseException:
            self._shutdown_loop()
            raise

    def _run_loop(self):
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _submit(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    async def _connect(self, bus_type):
        try:
            bus = await MessageBus(bus_type=bus_type).connect()
        except DBusError as e:
            raise TransportError(e.type, e.text) from e
        except (OSError, EOFError) as e:
            raise TransportError("org.freedesktop.DBus.Error.NoServer", str(e)) from e
        bus.add_message_handler(self._on_message)
        return bus

    async def _call(self, member, signature, body, destination=BUS_NAME,
                    path=OBJECT_PATH, interface=INTERFACE):
        try:
            reply = await self._bus.call(Message(
                destination=destination, path=path, interface=interface,
                member=member, signature=signature, body=body,
            ))
        except DBusError as e:
            raise TransportError(e.type, e.text) from e
        except (OSError, EOFError) as e:
            raise TransportError("org.freedesktop.DBus.Error.Disconnected", str(e)) from e
        if reply.message_type == MessageType.ERROR:
            text = reply.body[0] if reply.body and isinstance(reply.body[0], str) else ""
            raise TransportError(reply.error_name, text)
        return reply.body

    def call(self, method, *args):
        signature, _ = METHODS[method]
        body = self._submit(self._call(method, signature, [_marshal(a) for a in args]))
        return tuple(_unmarshal(v) for v in body)

    def _add_match(self, signal):
        rule = (
            f"type='signal',interface='{INTERFACE}',"
            f"path='{OBJECT_PATH}',member='{signal}'"
        )
        self._submit(self._call(
            "AddMatch", "s", [rule], destination="org.freedesktop.DBus",
            path="/org/freedesktop/DBus", interface="org.freedesktop.DBus",
        ))

    def subscribe(self, signal, handler):
        # _on_message takes the lock on the loop thread, so it must not be
        # held while waiting for the AddMatch reply.
        with self._lock:
            first = signal not in self._matched
            self._matched.add(signal)
        if first:
            try:
                self._add_match(signal)
            except BaseException:
                with self._lock:
                    self._matched.discard(signal)
                raise
        receiver = SignalReceiver(signal, handler, self._remove)
        with self._lock:
            self._receivers.setdefault(signal, []).append(receiver)
        return receiver

    def _remove(self, receiver):
        with self._lock:
            receivers = self._receivers.get(receiver.signal, [])
            if receiver in receivers:
                receivers.remove(receiver)

    def _on_message(self, message):
        if message.message_type != MessageType.SIGNAL:
            return None
        if message.interface != INTERFACE or message.path != OBJECT_PATH:
            return None
        with self._lock:
            receivers = list(self._receivers.get(message.member, ()))
        if receivers:
            self._dispatcher.submit(self._deliver, receivers, list(message.body))
        return None

    def _deliver(self, receivers, args):
        for receiver in receivers:
            try:
                receiver.handler(*args)
            except Exception:
                log.exception("handler for %s failed", receiver.signal)

    def run(self):
        self._stopped.clear()
        self._stopped.wait()

    def quit(self):
        self._stopped.set()

    def _shutdown_loop(self):
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        self._dispatcher.shutdown(wait=False)

    def close(self):
        self.quit()
        if self._bus is not None:
            self._loop.call_soon_threadsafe(self._bus.disconnect)
            self._bus = None
            self._shutdown_loop()
