"""Raw pixel data for the ``image-data`` hint."""

from dataclasses import dataclass

from .variant import StructType, Tag

# width, height, rowstride, has alpha, bits per sample, channels, data
IMAGE_STRUCT = StructType(
    (Tag.INT32, Tag.INT32, Tag.INT32, Tag.BOOL, Tag.INT32, Tag.INT32, Tag.BYTES)
)


@dataclass(frozen=True)
class RawImage:
    """
    An image sent inline with a notification, in the ``(iiibiiay)`` layout
    of the protocol. The fields are passed through as given: nothing checks
    that *row_stride* and *data* agree with the dimensions.
    """

    width: int
    height: int
    row_stride: int
    has_alpha: bool
    bits_per_sample: int
    channel_count: int
    data: bytes

    @classmethod
    def from_pixels(cls, width, height, data, has_alpha=True):
        """
        Describe a tightly packed 8 bit RGB or RGBA buffer, as produced by
        e.g. ``PIL.Image.tobytes()``.
        """
        channels = 4 if has_alpha else 3
        return cls(width, height, width * channels, has_alpha, 8, channels, bytes(data))

    def to_struct(self):
        return (
            self.width,
            self.height,
            self.row_stride,
            self.has_alpha,
            self.bits_per_sample,
            self.channel_count,
            self.data,
        )

    @classmethod
    def from_struct(cls, fields):
        return cls(*fields)

    def __repr__(self):
        return (
            f"RawImage({self.width}x{self.height}, stride={self.row_stride}, "
            f"alpha={self.has_alpha}, bps={self.bits_per_sample}, "
            f"channels={self.channel_count}, {len(self.data)} bytes)"
        )
