"""Field-level access to the LE/LX header and the tables it points at."""

from __future__ import annotations

from .le_defs import (
    ObjectEntry,
    PageMapLE,
    PageMapLX,
    VxdHeader,
    field_offset,
    field_size,
    header_field_names,
)

_NO_HEADER = -1


class HeaderView:
    """Reads and writes header fields of an LE/LX file held in a Binary.

    An offset of -1 means the file has no header: reads give zeros and
    writes are ignored.
    """

    def __init__(self, binary, offset):
        self._binary = binary
        self.offset = offset

    @property
    def present(self):
        """Tell whether the view points at a header."""
        return self.offset != _NO_HEADER

    def _readers(self):
        binary = self._binary
        return {1: binary.read_uint8, 2: binary.read_uint16, 4: binary.read_uint32}

    def _writers(self):
        binary = self._binary
        return {1: binary.write_uint8, 2: binary.write_uint16, 4: binary.write_uint32}

    def read(self):
        """The whole header, or an all-zero header when there is none."""
        if not self.present:
            return VxdHeader()
        return VxdHeader(**{name: self.get(name) for name in header_field_names()})

    def get(self, name):
        """Value of one header field, by name with or without the e32_ prefix."""
        position = field_offset(name)
        width = field_size(name)
        if not self.present:
            return 0
        return self._readers()[width](self.offset + position)

    def set(self, name, value):
        """Store one header field in the underlying data."""
        position = field_offset(name)
        width = field_size(name)
        if not self.present:
            return
        self._writers()[width](self.offset + position, value)

    def read_object(self, offset):
        """The object table entry stored at an absolute offset."""
        read = self._binary.read_uint32
        return ObjectEntry(*(read(offset + 4 * slot) for slot in range(ObjectEntry.SIZE // 4)))

    def read_o16_map(self, offset):
        """The LE page map entry stored at an absolute offset."""
        read = self._binary.read_uint8
        return PageMapLE(
            page_number=(read(offset), read(offset + 1), read(offset + 2)),
            page_flags=read(offset + 3),
        )

    def read_o32_map(self, offset):
        """The LX page map entry stored at an absolute offset."""
        binary = self._binary
        return PageMapLX(
            page_data_offset=binary.read_uint32(offset),
            page_size=binary.read_uint16(offset + 4),
            page_flags=binary.read_uint16(offset + 6),
        )