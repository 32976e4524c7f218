"""
Notification hints: the catalog of known hint keys and the dictionary that
carries them to the server.

Hints are read and written through :class:`HintKey` descriptors, which fix
the wire name and the wire type of each hint::

    hints = Hints()
    hints.set(URGENCY, Urgency.CRITICAL)
    hints.set(CATEGORY, "im.received")
    hints.get(URGENCY)      # Urgency.CRITICAL
    hints.get(SOUND_NAME)   # None

Entries the catalog does not know about are kept as raw :class:`Variant`
values so a dictionary read from the bus can be merged or forwarded without
losing them.
"""

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional, Tuple

from . import capabilities
from .errors import ProtocolViolation, TypeMismatch
from .image import IMAGE_STRUCT, RawImage
from .variant import PayloadType, Tag, Variant, decode, encode


class Urgency(enum.IntEnum):
    LOW = 0
    NORMAL = 1
    CRITICAL = 2


def parse_version(text):
    """``"1.2"`` -> ``(1, 2)``, ``"1.2.1"`` -> ``(1, 2)``"""
    parts = text.strip().split(".")
    try:
        return int(parts[0]), int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        raise ProtocolViolation(f"not a specification version: {text!r}") from None


@dataclass(frozen=True)
class HintKey:
    """
    Describes one hint: its wire *name*, the wire *type* of its value, the
    specification *version* that introduced it (``None`` for vendor
    extensions) and the *capability* a server must advertise for the hint
    to have an effect, if any.

    *python_type* is set for hints whose Python value is richer than the
    wire value (:class:`Urgency` for a byte, :class:`RawImage` for a
    struct).
    """

    name: str
    type: PayloadType
    version: Optional[Tuple[int, int]]
    capability: Optional[str] = None
    python_type: Optional[type] = field(default=None, compare=False)

    @property
    def vendor(self):
        return self.version is None

    def supported_by(self, spec_version):
        """
        Whether a server implementing *spec_version* (as reported by
        ``GetServerInformation``) knows this hint. Vendor hints are never
        ruled out by version; check the capability instead.
        """
        if self.version is None:
            return True
        return parse_version(spec_version) >= self.version

    def encode(self, value) -> Variant:
        codec = _CODECS.get(self.python_type)
        if codec is not None:
            value = codec[0](self, value)
        return encode(value, self.type)

    def decode(self, variant: Variant):
        value = decode(variant, self.type)
        codec = _CODECS.get(self.python_type)
        if codec is not None:
            value = codec[1](self, value)
        return value


def _encode_urgency(key, value):
    if not isinstance(value, Urgency):
        raise TypeMismatch(f"{key.name} takes an Urgency, not {type(value).__name__}")
    return int(value)


def _decode_urgency(key, value):
    try:
        return Urgency(value)
    except ValueError:
        raise ProtocolViolation(f"{key.name} has no level {value}") from None


def _encode_image(key, value):
    if not isinstance(value, RawImage):
        raise TypeMismatch(f"{key.name} takes a RawImage, not {type(value).__name__}")
    return value.to_struct()


def _decode_image(key, value):
    return RawImage.from_struct(value)


_CODECS = {
    Urgency: (_encode_urgency, _decode_urgency),
    RawImage: (_encode_image, _decode_image),
}


ACTION_ICONS = HintKey("action-icons", Tag.BOOL, (1, 2), capabilities.ACTION_ICONS)
CATEGORY = HintKey("category", Tag.STR, (1, 0))
DESKTOP_ENTRY = HintKey("desktop-entry", Tag.STR, (1, 0))
IMAGE_DATA = HintKey("image-data", IMAGE_STRUCT, (1, 2), python_type=RawImage)
IMAGE_PATH = HintKey("image-path", Tag.STR, (1, 2))
RESIDENT = HintKey("resident", Tag.BOOL, (1, 2), capabilities.PERSISTENCE)
SOUND_FILE = HintKey("sound-file", Tag.STR, (1, 0), capabilities.SOUND)
SOUND_NAME = HintKey("sound-name", Tag.STR, (1, 0), capabilities.SOUND)
SUPPRESS_SOUND = HintKey("suppress-sound", Tag.BOOL, (1, 0), capabilities.SOUND)
TRANSIENT = HintKey("transient", Tag.BOOL, (1, 2))
X = HintKey("x", Tag.INT32, (1, 0))
Y = HintKey("y", Tag.INT32, (1, 0))
URGENCY = HintKey("urgency", Tag.BYTE, (1, 0), python_type=Urgency)

# Some servers and senders use int64 for the position. Not in HINT_KEYS,
# which holds one descriptor per name.
X_INT64 = HintKey("x", Tag.INT64, (1, 0))
Y_INT64 = HintKey("y", Tag.INT64, (1, 0))

# Spellings replaced in 1.2, for servers that predate it.
IMAGE_DATA_V11 = HintKey("image_data", IMAGE_STRUCT, (1, 1), python_type=RawImage)
IMAGE_PATH_V11 = HintKey("image_path", Tag.STR, (1, 1))
ICON_DATA = HintKey("icon_data", IMAGE_STRUCT, (1, 0), python_type=RawImage)

X_KDE_URLS = HintKey("x-kde-urls", Tag.STR_ARRAY, None, capabilities.X_KDE_URLS)
X_KDE_ORIGIN_NAME = HintKey("x-kde-origin-name", Tag.STR, None, capabilities.X_KDE_ORIGIN_NAME)
X_KDE_DISPLAY_APPNAME = HintKey(
    "x-kde-display-appname", Tag.STR, None, capabilities.X_KDE_DISPLAY_APPNAME
)

HINT_KEYS = MappingProxyType({
    key.name: key
    for key in (
        ACTION_ICONS, CATEGORY, DESKTOP_ENTRY, IMAGE_DATA, IMAGE_PATH,
        RESIDENT, SOUND_FILE, SOUND_NAME, SUPPRESS_SOUND, TRANSIENT, X, Y,
        URGENCY, IMAGE_DATA_V11, IMAGE_PATH_V11, ICON_DATA, X_KDE_URLS,
        X_KDE_ORIGIN_NAME, X_KDE_DISPLAY_APPNAME,
    )
})


def lookup(name) -> Optional[HintKey]:
    return HINT_KEYS.get(name)


class Hints:
    """
    Hint dictionary of one notification (or of an ``Inhibit`` call).

    Values are stored as :class:`Variant`; :meth:`set` and :meth:`get`
    convert through a :class:`HintKey`, :meth:`set_raw` and
    :meth:`get_raw` bypass the catalog.
    """

    def __init__(self, entries=None):
        self._entries = {}
        if entries:
            for name, variant in dict(entries).items():
                self.set_raw(name, variant)

    @classmethod
    def from_wire(cls, entries):
        """Build from a mapping of wire names to :class:`Variant`."""
        return cls(entries)

    def to_wire(self):
        return dict(self._entries)

    def set(self, key: HintKey, value):
        """Store *value* under *key*, replacing whatever was there."""
        self._entries[key.name] = key.encode(value)
        return self

    def get(self, key: HintKey):
        """
        The value stored under *key*, or ``None`` when it is not set. Raises
        :exc:`TypeMismatch` when the stored value has another wire type.
        """
        variant = self._entries.get(key.name)
        if variant is None:
            return None
        return key.decode(variant)

    def set_raw(self, name, variant):
        if not isinstance(variant, Variant):
            raise TypeMismatch(f"raw hint {name!r} must be a Variant, not {type(variant).__name__}")
        self._entries[name] = variant
        return self

    def get_raw(self, name) -> Optional[Variant]:
        return self._entries.get(name)

    def discard(self, key):
        name = key.name if isinstance(key, HintKey) else key
        self._entries.pop(name, None)

    def merge(self, other):
        """Copy every entry of *other* into this dictionary; *other* wins."""
        self._entries.update(other._entries)
        return self

    def __or__(self, other):
        if not isinstance(other, Hints):
            return NotImplemented
        return Hints(self._entries).merge(other)

    def raw_keys(self):
        return list(self._entries)

    def unknown_keys(self):
        """Wire names that are not in the catalog."""
        return [name for name in self._entries if name not in HINT_KEYS]

    def __contains__(self, key):
        name = key.name if isinstance(key, HintKey) else key
        return name in self._entries

    def __len__(self):
        return len(self._entries)

    def __bool__(self):
        return bool(self._entries)

    def __eq__(self, other):
        if not isinstance(other, Hints):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self):
        return f"Hints({self._entries!r})"
