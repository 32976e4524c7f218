import pytest

from fdnotify import capabilities, hints
from fdnotify.errors import ProtocolViolation, TypeMismatch
from fdnotify.hints import Hints, Urgency
from fdnotify.image import RawImage
from fdnotify.variant import Tag, Variant, encode

IMAGE = RawImage(2, 1, 8, True, 8, 4, bytes(range(8)))


@pytest.mark.parametrize("key, value", [
    (hints.ACTION_ICONS, True),
    (hints.CATEGORY, "email.arrived"),
    (hints.DESKTOP_ENTRY, "rhythmbox"),
    (hints.IMAGE_DATA, IMAGE),
    (hints.IMAGE_PATH, "/usr/share/icons/a.png"),
    (hints.RESIDENT, False),
    (hints.SOUND_FILE, "/tmp/ding.oga"),
    (hints.SOUND_NAME, "message-new-instant"),
    (hints.SUPPRESS_SOUND, True),
    (hints.TRANSIENT, True),
    (hints.X, 100),
    (hints.Y, -20),
    (hints.URGENCY, Urgency.CRITICAL),
    (hints.X_KDE_URLS, ["file:///tmp/a", "file:///tmp/b"]),
    (hints.X_KDE_ORIGIN_NAME, "Origin Name"),
    (hints.X_KDE_DISPLAY_APPNAME, "Display Name"),
])
def test_every_known_hint_reads_back(key, value):
    h = Hints().set(key, value)
    assert h.get(key) == value
    assert h.raw_keys() == [key.name]


def test_urgency_is_sent_as_a_byte():
    h = Hints().set(hints.URGENCY, Urgency.LOW)
    variant = h.get_raw("urgency")
    assert variant.tag is Tag.BYTE
    assert variant.value == 0


def test_urgency_rejects_plain_ints():
    with pytest.raises(TypeMismatch):
        Hints().set(hints.URGENCY, 2)


def test_unknown_urgency_level_from_the_server():
    h = Hints().set_raw("urgency", encode(7, Tag.BYTE))
    with pytest.raises(ProtocolViolation):
        h.get(hints.URGENCY)


def test_image_data_is_a_struct():
    variant = Hints().set(hints.IMAGE_DATA, IMAGE).get_raw("image-data")
    assert variant.signature == "(iiibiiay)"


def test_wrong_type_on_set():
    with pytest.raises(TypeMismatch):
        Hints().set(hints.RESIDENT, "yes")
    with pytest.raises(TypeMismatch):
        Hints().set(hints.IMAGE_DATA, IMAGE.to_struct())


def test_absent_key_is_none():
    assert Hints().get(hints.SOUND_NAME) is None


def test_raw_string_under_urgency_is_a_mismatch():
    h = Hints().set_raw("urgency", encode("critical", Tag.STR))
    with pytest.raises(TypeMismatch):
        h.get(hints.URGENCY)


def test_set_overwrites():
    h = Hints().set(hints.CATEGORY, "a").set(hints.CATEGORY, "b")
    assert h.get(hints.CATEGORY) == "b"
    assert len(h) == 1


def test_merge_is_right_biased():
    left = Hints().set(hints.X, 1).set(hints.CATEGORY, "device")
    right = Hints().set(hints.X, 2).set(hints.Y, 3)
    left.merge(right)
    assert left.get(hints.X) == 2
    assert left.get(hints.Y) == 3
    assert left.get(hints.CATEGORY) == "device"


def test_or_leaves_operands_alone():
    left = Hints().set(hints.X, 1)
    right = Hints().set(hints.X, 2)
    merged = left | right
    assert merged.get(hints.X) == 2
    assert left.get(hints.X) == 1


def test_unknown_entries_survive_merge():
    vendor = Variant.opaque(object(), "a{ss}")
    received = Hints.from_wire({
        "x-vendor-thing": vendor,
        "urgency": encode(1, Tag.BYTE),
    })
    merged = Hints().set(hints.CATEGORY, "im") | received
    assert merged.get_raw("x-vendor-thing") is vendor
    assert merged.unknown_keys() == ["x-vendor-thing"]
    assert sorted(merged.raw_keys()) == ["category", "urgency", "x-vendor-thing"]
    assert merged.to_wire()["x-vendor-thing"] is vendor


def test_set_raw_requires_a_variant():
    with pytest.raises(TypeMismatch):
        Hints().set_raw("x", 1)


def test_contains_and_discard():
    h = Hints().set(hints.TRANSIENT, True)
    assert hints.TRANSIENT in h
    assert "transient" in h
    h.discard(hints.TRANSIENT)
    assert not h
    h.discard("never-set")


def test_registry():
    assert hints.lookup("urgency") is hints.URGENCY
    assert hints.lookup("x-unknown") is None
    assert hints.HINT_KEYS["sound-name"].capability == capabilities.SOUND
    with pytest.raises(TypeError):
        hints.HINT_KEYS["new"] = hints.URGENCY


def test_versions():
    assert hints.ACTION_ICONS.supported_by("1.2")
    assert not hints.ACTION_ICONS.supported_by("1.1")
    assert hints.IMAGE_DATA_V11.supported_by("1.1")
    assert hints.X_KDE_URLS.vendor
    assert hints.X_KDE_URLS.supported_by("0.9")
    with pytest.raises(ProtocolViolation):
        hints.CATEGORY.supported_by("latest")
    assert hints.ACTION_ICONS.supported_by("1.2.1")
    assert not hints.ACTION_ICONS.supported_by("1.1.9")
    assert hints.CATEGORY.supported_by("1")


def test_int64_position():
    received = Hints.from_wire({
        "x": Variant(Tag.INT64, 2 ** 40, "x"),
        "y": Variant(Tag.INT32, 5, "i"),
    })
    assert received.get(hints.X_INT64) == 2 ** 40
    assert received.get(hints.Y) == 5
    with pytest.raises(TypeMismatch):
        received.get(hints.X)
    with pytest.raises(TypeMismatch):
        received.get(hints.Y_INT64)
    assert Hints().set(hints.X_INT64, 3).get_raw("x") == Variant(Tag.INT64, 3, "x")
