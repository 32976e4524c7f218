"""
Talks to the notification server of the running session. Shows real
notifications, so it only runs with FDNOTIFY_LIVE_BUS=1.
"""

import os

import pytest

from fdnotify import capabilities, hints
from fdnotify.actions import Actions
from fdnotify.config import open_channel
from fdnotify.notifications import Notifications, Request

pytestmark = pytest.mark.skipif(
    os.environ.get("FDNOTIFY_LIVE_BUS") != "1", reason="set FDNOTIFY_LIVE_BUS=1"
)


@pytest.fixture(params=["dbus", "aio"])
def client(request):
    if request.param == "dbus":
        pytest.importorskip("dbus")
        pytest.importorskip("gi")
    with open_channel(request.param) as channel:
        yield Notifications(channel)


def test_notify_and_close(client):
    caps = client.discover()
    h = hints.Hints().set(hints.X_KDE_DISPLAY_APPNAME, "(KDE) Notification Test")
    if caps.allows(hints.RESIDENT):
        h.set(hints.RESIDENT, False)
    actions = Actions().add("verify", "Verify") if capabilities.ACTIONS in caps else Actions()

    nid = client.open(Request(
        "This is a summary",
        "This is the body of the notification.",
        app_name="org.freedesktop.TestNotifications",
        app_icon="debug-run",
        actions=actions,
        hints=h,
        timeout_ms=5000,
    ))
    assert nid > 0
    sub = client.subscribe(nid)
    client.close(nid)
    if client.channel.__class__.__name__ == "AioChannel":
        assert sub.wait_closed(5)


def test_server_information(client):
    info = client.get_server_information()
    assert info.spec_version
