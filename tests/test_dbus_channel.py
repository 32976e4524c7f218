import pytest

dbus = pytest.importorskip("dbus")
pytest.importorskip("gi")

from fdnotify import hints  # noqa: E402
from fdnotify.dbus_channel import DBusChannel, from_dbus, to_dbus, unwrap  # noqa: E402
from fdnotify.errors import TransportError  # noqa: E402
from fdnotify.hints import Hints, Urgency  # noqa: E402
from fdnotify.image import RawImage  # noqa: E402
from fdnotify.notifications import Notifications  # noqa: E402
from fdnotify.variant import Tag  # noqa: E402


class FakeMatch:
    def __init__(self):
        self.removed = False

    def remove(self):
        self.removed = True


class FakeBus:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []
        self.receivers = []

    def call_blocking(self, bus_name, object_path, interface, method, signature, args, timeout=-1.0):
        self.calls.append((bus_name, object_path, interface, method, signature, args))
        if self.error is not None:
            raise self.error
        return self.reply

    def add_signal_receiver(self, handler, signal_name=None, dbus_interface=None, path=None):
        match = FakeMatch()
        self.receivers.append((signal_name, handler, match))
        return match


def test_scalar_hints_get_dbus_types():
    assert isinstance(to_dbus(hints.URGENCY.encode(Urgency.LOW)), dbus.Byte)
    assert isinstance(to_dbus(hints.RESIDENT.encode(True)), dbus.Boolean)
    urls = to_dbus(hints.X_KDE_URLS.encode(["a"]))
    assert isinstance(urls, dbus.Array)
    assert urls.signature == "s"


def test_image_is_a_struct():
    image = RawImage(1, 1, 3, False, 8, 3, b"abc")
    wire = to_dbus(hints.IMAGE_DATA.encode(image))
    assert isinstance(wire, dbus.Struct)
    assert wire.signature == "iiibiiay"
    assert hints.IMAGE_DATA.decode(from_dbus(wire)) == image


def test_from_dbus_tags():
    assert from_dbus(dbus.Boolean(True)).tag is Tag.BOOL
    assert from_dbus(dbus.Byte(2)).tag is Tag.BYTE
    assert from_dbus(dbus.Int32(-1)).tag is Tag.INT32
    assert from_dbus(dbus.UInt32(1)).tag is Tag.UINT32
    assert from_dbus(dbus.String("x")).tag is Tag.STR
    assert from_dbus(dbus.Array(["a"], signature="s")).value == ("a",)
    assert from_dbus(dbus.Dictionary({}, signature="ss")).tag is Tag.OPAQUE


def test_call_marshals_hints():
    bus = FakeBus(reply=dbus.UInt32(12))
    client = Notifications(DBusChannel(bus))
    nid = client.notify("Hi", actions=[("ok", "OK")],
                        hints=Hints().set(hints.URGENCY, Urgency.CRITICAL))
    assert nid == 12
    assert type(nid) is int
    _, _, interface, method, signature, args = bus.calls[0]
    assert (interface, method, signature) == (
        "org.freedesktop.Notifications", "Notify", "susssasa{sv}i"
    )
    assert isinstance(args[5], dbus.Array)
    assert isinstance(args[6], dbus.Dictionary)
    assert isinstance(args[6]["urgency"], dbus.Byte)


def test_multiple_results():
    bus = FakeBus(reply=(dbus.String("srv"), dbus.String("v"), dbus.String("1"), dbus.String("1.2")))
    info = Notifications(DBusChannel(bus)).get_server_information()
    assert info.name == "srv"
    assert type(info.name) is str


def test_no_result():
    bus = FakeBus(reply=None)
    assert DBusChannel(bus).call("CloseNotification", 1) == ()


def test_dbus_exception_becomes_transport_error():
    error = dbus.exceptions.DBusException(
        "no such notification", name="org.freedesktop.Notifications.Error.NoSuchId"
    )
    bus = FakeBus(error=error)
    with pytest.raises(TransportError) as info:
        Notifications(DBusChannel(bus)).close(5)
    assert info.value.name == "org.freedesktop.Notifications.Error.NoSuchId"
    assert info.value.message == "no such notification"
    assert info.value.__cause__ is error


def test_signals_are_unwrapped():
    bus = FakeBus()
    channel = DBusChannel(bus)
    got = []
    receiver = channel.subscribe("ActionInvoked", lambda *args: got.append(args))
    name, handler, match = bus.receivers[0]
    assert name == "ActionInvoked"
    handler(dbus.UInt32(3), dbus.String("ok"))
    assert got == [(3, "ok")]
    assert type(got[0][0]) is int
    receiver.remove()
    assert match.removed


def test_unwrap_dictionary():
    value = unwrap(dbus.Dictionary({"x": dbus.Int32(1)}, signature="sv"))
    assert value["x"].tag is Tag.INT32
