"""
Channel over dbus-python.

Method calls block on libdbus. Signals are delivered by the GLib main loop,
so :meth:`DBusChannel.run` (or any other ``GLib.MainLoop`` on the default
context) must be running for subscribed handlers to be called.
"""

import logging

import dbus
import dbus.mainloop.glib
from gi.repository import GLib

from .channel import (
    BUS_NAME, INTERFACE, METHODS, OBJECT_PATH, Channel, SignalReceiver,
)
from .errors import TransportError
from .variant import Tag, Variant

log = logging.getLogger(__name__)

_SCALARS = {
    Tag.BOOL: dbus.Boolean,
    Tag.BYTE: dbus.Byte,
    Tag.INT32: dbus.Int32,
    Tag.UINT32: dbus.UInt32,
    Tag.INT64: dbus.Int64,
    Tag.UINT64: dbus.UInt64,
    Tag.DOUBLE: dbus.Double,
    Tag.STR: dbus.String,
}

# checked in order: dbus.Boolean and dbus.Byte are int subclasses too
_FROM_DBUS = (
    (dbus.Boolean, Tag.BOOL, bool),
    (dbus.Byte, Tag.BYTE, int),
    (dbus.Int32, Tag.INT32, int),
    (dbus.UInt32, Tag.UINT32, int),
    (dbus.Int64, Tag.INT64, int),
    (dbus.UInt64, Tag.UINT64, int),
    (dbus.Double, Tag.DOUBLE, float),
    (dbus.String, Tag.STR, str),
)


def to_dbus(variant: Variant):
    """dbus-python value for a hint :class:`Variant`."""
    if variant.tag in _SCALARS:
        return _SCALARS[variant.tag](variant.value)
    if variant.tag is Tag.STR_ARRAY:
        return dbus.Array(variant.value, signature="s")
    if variant.tag is Tag.BYTES:
        return dbus.ByteArray(variant.value)
    if variant.tag is Tag.STRUCT:
        return dbus.Struct(
            [to_dbus(f) for f in variant.value], signature=variant.signature[1:-1]
        )
    return variant.value


def from_dbus(value) -> Variant:
    """
    :class:`Variant` for a value received in an ``a{sv}`` dictionary.
    Types outside :class:`Tag` are kept as opaque variants.
    """
    for cls, tag, native in _FROM_DBUS:
        if isinstance(value, cls):
            return Variant(tag, native(value), tag.value)
    if isinstance(value, dbus.ByteArray):
        return Variant(Tag.BYTES, bytes(value), "ay")
    if isinstance(value, dbus.Array):
        if value.signature == "s":
            return Variant(Tag.STR_ARRAY, tuple(str(s) for s in value), "as")
        if value.signature == "y":
            return Variant(Tag.BYTES, bytes(bytearray(value)), "ay")
    if isinstance(value, dbus.Struct):
        fields = tuple(from_dbus(f) for f in value)
        if all(f.tag is not Tag.OPAQUE for f in fields):
            return Variant(
                Tag.STRUCT, fields, "(" + "".join(f.signature for f in fields) + ")"
            )
    return Variant.opaque(value, getattr(value, "signature", "") or "")


def unwrap(value):
    """Plain Python value for a dbus-python argument or result."""
    if isinstance(value, dbus.Boolean):
        return bool(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, dbus.Dictionary):
        return {unwrap(k): from_dbus(v) for k, v in value.items()}
    if isinstance(value, dbus.Struct):
        return tuple(unwrap(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [unwrap(v) for v in value]
    return value


def _marshal(arg):
    if isinstance(arg, dict):
        return dbus.Dictionary({k: to_dbus(v) for k, v in arg.items()}, signature="sv")
    if isinstance(arg, list):
        return dbus.Array(arg, signature="s")
    return arg


def _transport_error(exc):
    return TransportError(
        exc.get_dbus_name() or "org.freedesktop.DBus.Error.Failed",
        exc.get_dbus_message() or "",
    )


class DBusChannel(Channel):
    """
    Channel on a dbus-python connection. Without *bus* a private session
    bus connection is opened, with the GLib main loop as its default loop.
    *timeout* is the libdbus reply timeout in seconds (-1 for its default).
    """

    def __init__(self, bus=None, timeout=-1.0):
        if bus is None:
            dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
            try:
                bus = dbus.SessionBus(private=True)
            except dbus.exceptions.DBusException as e:
                raise _transport_error(e) from e
            self._owns_bus = True
        else:
            self._owns_bus = False
        self._bus = bus
        self._timeout = timeout
        self._loop = None

    @property
    def bus(self):
        return self._bus

    def call(self, method, *args):
        signature, returns = METHODS[method]
        try:
            reply = self._bus.call_blocking(
                BUS_NAME, OBJECT_PATH, INTERFACE, method, signature,
                [_marshal(a) for a in args], timeout=self._timeout,
            )
        except dbus.exceptions.DBusException as e:
            raise _transport_error(e) from e
        # call_blocking unpacks single values and returns None for none
        if returns == 0 or reply is None:
            return ()
        if returns == 1:
            return (unwrap(reply),)
        return tuple(unwrap(v) for v in reply)

    def subscribe(self, signal, handler):
        def receive(*args):
            handler(*[unwrap(a) for a in args])

        match = self._bus.add_signal_receiver(
            receive, signal_name=signal, dbus_interface=INTERFACE, path=OBJECT_PATH,
        )
        return SignalReceiver(signal, handler, lambda receiver: match.remove())

    def run(self):
        self._loop = GLib.MainLoop()
        log.debug("running GLib main loop")
        self._loop.run()

    def quit(self):
        if self._loop is not None:
            self._loop.quit()

    def close(self):
        self.quit()
        if self._owns_bus:
            self._bus.close()
