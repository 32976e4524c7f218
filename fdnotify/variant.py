"""
Tagged values carried in the ``a{sv}`` hint dictionaries of the
notification protocol.

Every value stored in a hint dictionary is a :class:`Variant`: the Python
value plus the wire type it was encoded as. :func:`encode` and
:func:`decode` are the only way in and out, and neither of them converts
between types. ``True`` is not an integer, ``1`` is not a bool, an int32
is not an int64.
"""

import enum
from dataclasses import dataclass
from typing import Any, Tuple, Union

from .errors import MalformedPayload, TypeMismatch


class Tag(enum.Enum):
    """Wire types a hint value can have. The value is the D-Bus signature."""

    BOOL = "b"
    BYTE = "y"
    INT32 = "i"
    UINT32 = "u"
    INT64 = "x"
    UINT64 = "t"
    DOUBLE = "d"
    STR = "s"
    STR_ARRAY = "as"
    BYTES = "ay"
    STRUCT = "r"
    # transport-native value of a type not listed above, kept untouched
    OPAQUE = "v"


@dataclass(frozen=True)
class StructType:
    """Payload type of a struct: the types of its fields, in order."""

    fields: Tuple[Union[Tag, "StructType"], ...]

    @property
    def tag(self):
        return Tag.STRUCT

    @property
    def signature(self):
        return "(" + "".join(signature_of(f) for f in self.fields) + ")"


PayloadType = Union[Tag, StructType]


def tag_of(payload_type: PayloadType) -> Tag:
    if isinstance(payload_type, StructType):
        return Tag.STRUCT
    return payload_type


def signature_of(payload_type: PayloadType) -> str:
    if isinstance(payload_type, StructType):
        return payload_type.signature
    if payload_type in (Tag.STRUCT, Tag.OPAQUE):
        raise ValueError(f"{payload_type.name} has no fixed signature")
    return payload_type.value


@dataclass(frozen=True)
class Variant:
    """
    A value together with its wire type.

    For structs *value* is a tuple of :class:`Variant`, for string arrays a
    tuple of :class:`str`, for byte arrays :class:`bytes`. An ``OPAQUE``
    variant holds whatever object the transport handed over, and the
    *signature* the transport reported for it.
    """

    tag: Tag
    value: Any
    signature: str

    @classmethod
    def opaque(cls, value, signature=""):
        return cls(Tag.OPAQUE, value, signature)

    def __repr__(self):
        return f"Variant({self.signature!r}, {self.value!r})"


_INT_RANGES = {
    Tag.BYTE: (0, 0xFF),
    Tag.INT32: (-(2 ** 31), 2 ** 31 - 1),
    Tag.UINT32: (0, 2 ** 32 - 1),
    Tag.INT64: (-(2 ** 63), 2 ** 63 - 1),
    Tag.UINT64: (0, 2 ** 64 - 1),
}


def _mismatch(value, expected):
    return TypeMismatch(
        f"{type(value).__name__} value {value!r} cannot be encoded as "
        f"{expected.name.lower()} ({signature_of(expected)!r})"
    )


def _check_scalar(value, expected: Tag):
    if expected is Tag.BOOL:
        if type(value) is not bool:
            raise _mismatch(value, expected)
        return value
    if expected in _INT_RANGES:
        if not isinstance(value, int) or isinstance(value, bool):
            raise _mismatch(value, expected)
        low, high = _INT_RANGES[expected]
        if not low <= value <= high:
            raise TypeMismatch(f"{value} does not fit in {expected.name.lower()}")
        return int(value)
    if expected is Tag.DOUBLE:
        if not isinstance(value, float):
            raise _mismatch(value, expected)
        return value
    if expected is Tag.STR:
        if not isinstance(value, str):
            raise _mismatch(value, expected)
        return value
    if expected is Tag.STR_ARRAY:
        if not isinstance(value, (list, tuple)) or not all(isinstance(s, str) for s in value):
            raise _mismatch(value, expected)
        return tuple(value)
    if expected is Tag.BYTES:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise _mismatch(value, expected)
        return bytes(value)
    raise TypeMismatch(f"cannot encode a value as {expected.name.lower()}")


def encode(value, expected: PayloadType) -> Variant:
    """Wrap *value* as a :class:`Variant` of type *expected*."""
    if isinstance(expected, StructType):
        if not isinstance(value, (list, tuple)):
            raise TypeMismatch(
                f"{type(value).__name__} cannot be encoded as struct {expected.signature}"
            )
        if len(value) != len(expected.fields):
            raise MalformedPayload(
                f"struct {expected.signature} needs {len(expected.fields)} fields, "
                f"got {len(value)}"
            )
        fields = tuple(encode(v, t) for v, t in zip(value, expected.fields))
        return Variant(Tag.STRUCT, fields, expected.signature)
    return Variant(expected, _check_scalar(value, expected), expected.value)


def decode(variant: Variant, expected: PayloadType):
    """
    Unwrap *variant*, which must have been encoded as *expected*. Structs
    come back as tuples and string arrays as lists.
    """
    if not isinstance(variant, Variant):
        raise TypeMismatch(f"expected a Variant, got {type(variant).__name__}")
    if variant.tag is not tag_of(expected):
        raise TypeMismatch(
            f"stored value has type {variant.signature or variant.tag.name.lower()!r}, "
            f"expected {signature_of(expected)!r}"
        )
    if isinstance(expected, StructType):
        if len(variant.value) != len(expected.fields):
            raise MalformedPayload(
                f"struct {expected.signature} needs {len(expected.fields)} fields, "
                f"got {len(variant.value)}"
            )
        return tuple(decode(v, t) for v, t in zip(variant.value, expected.fields))
    if variant.tag is Tag.STR_ARRAY:
        return list(variant.value)
    return variant.value
