"""Record layouts and lookup tables of the LE and LX executable formats."""

from __future__ import annotations

import enum
import struct
from dataclasses import astuple, dataclass, field, fields

DOS_SIGNATURE_MZ = 0x5A4D
LFANEW_OFFSET = 0x3C
VXD_SIGNATURE = 0x454C
LX_SIGNATURE = 0x584C


class LeType(enum.IntEnum):
    """Kind of LE or LX file."""

    UNKNOWN = 0
    EXE = 1


def _u8():
    return field(default=0, metadata={"format": "B"})


def _u16():
    return field(default=0, metadata={"format": "H"})


def _u32():
    return field(default=0, metadata={"format": "I"})


@dataclass
class VxdHeader:
    """The header that follows the MS-DOS stub of an LE or LX file."""

    magic: int = _u16()
    border: int = _u8()
    worder: int = _u8()
    level: int = _u32()
    cpu: int = _u16()
    os: int = _u16()
    ver: int = _u32()
    mflags: int = _u32()
    mpages: int = _u32()
    startobj: int = _u32()
    eip: int = _u32()
    stackobj: int = _u32()
    esp: int = _u32()
    pagesize: int = _u32()
    lastpagesize: int = _u32()
    fixupsize: int = _u32()
    fixupsum: int = _u32()
    ldrsize: int = _u32()
    ldrsum: int = _u32()
    objtab: int = _u32()
    objcnt: int = _u32()
    objmap: int = _u32()
    itermap: int = _u32()
    rsrctab: int = _u32()
    rsrccnt: int = _u32()
    restab: int = _u32()
    enttab: int = _u32()
    dirtab: int = _u32()
    dircnt: int = _u32()
    fpagetab: int = _u32()
    frectab: int = _u32()
    impmod: int = _u32()
    impmodcnt: int = _u32()
    impproc: int = _u32()
    pagesum: int = _u32()
    datapage: int = _u32()
    preload: int = _u32()
    nrestab: int = _u32()
    cbnrestab: int = _u32()
    nressum: int = _u32()
    autodata: int = _u32()
    debuginfo: int = _u32()
    debuglen: int = _u32()
    instpreload: int = _u32()
    instdemand: int = _u32()
    heapsize: int = _u32()

    @classmethod
    def from_bytes(cls, raw):
        """Decode a header from little-endian bytes."""
        if len(raw) < _HEADER_STRUCT.size:
            raise ValueError(f"header needs {_HEADER_STRUCT.size} bytes, got {len(raw)}")
        return cls(*_HEADER_STRUCT.unpack_from(raw))

    def to_bytes(self):
        return _HEADER_STRUCT.pack(*astuple(self))


def _layout(record_type):
    formats = [(item.name, item.metadata["format"]) for item in fields(record_type)]
    offsets = {}
    position = 0
    for name, fmt in formats:
        width = struct.calcsize("<" + fmt)
        offsets[name] = (position, width, fmt)
        position += width
    return offsets, struct.Struct("<" + "".join(fmt for _, fmt in formats))


_HEADER_FIELDS, _HEADER_STRUCT = _layout(VxdHeader)
VxdHeader.SIZE = _HEADER_STRUCT.size


@dataclass
class ObjectEntry:
    """One entry of the object table."""

    size: int = _u32()
    base: int = _u32()
    flags: int = _u32()
    pagemap: int = _u32()
    mapsize: int = _u32()
    reserved: int = _u32()

    @classmethod
    def from_bytes(cls, raw):
        if len(raw) < _OBJECT_STRUCT.size:
            raise ValueError(f"object entry needs {_OBJECT_STRUCT.size} bytes, got {len(raw)}")
        return cls(*_OBJECT_STRUCT.unpack_from(raw))

    def to_bytes(self):
        return _OBJECT_STRUCT.pack(*astuple(self))


_, _OBJECT_STRUCT = _layout(ObjectEntry)
ObjectEntry.SIZE = _OBJECT_STRUCT.size


@dataclass
class PageMapLE:
    """One entry of an LE object page map: a 24-bit page number and flags."""

    page_number: tuple[int, int, int] = (0, 0, 0)
    page_flags: int = 0

    SIZE = 4

    @property
    def page_index(self):
        """The page number with its first byte most significant."""
        high, middle, low = self.page_number
        return (high << 16) | (middle << 8) | low

    @classmethod
    def from_bytes(cls, raw):
        if len(raw) < cls.SIZE:
            raise ValueError(f"LE page map entry needs {cls.SIZE} bytes, got {len(raw)}")
        return cls(page_number=(raw[0], raw[1], raw[2]), page_flags=raw[3])

    def to_bytes(self):
        return bytes((*self.page_number, self.page_flags))


@dataclass
class PageMapLX:
    """One entry of an LX object page map."""

    page_data_offset: int = 0
    page_size: int = 0
    page_flags: int = 0

    _STRUCT = struct.Struct("<IHH")
    SIZE = _STRUCT.size

    @classmethod
    def from_bytes(cls, raw):
        if len(raw) < cls.SIZE:
            raise ValueError(f"LX page map entry needs {cls.SIZE} bytes, got {len(raw)}")
        return cls(*cls._STRUCT.unpack_from(raw))

    def to_bytes(self):
        return self._STRUCT.pack(self.page_data_offset, self.page_size, self.page_flags)


def _header_field(name):
    key = name[4:] if name.startswith("e32_") else name
    try:
        return _HEADER_FIELDS[key]
    except KeyError:
        raise KeyError(f"unknown header field {name!r}") from None


def field_offset(name):
    """Offset of a header field from the start of the header."""
    return _header_field(name)[0]


def field_size(name):
    """Width of a header field in bytes."""
    return _header_field(name)[1]


def header_field_names():
    """Names of the header fields in the order they are stored."""
    return list(_HEADER_FIELDS)


def image_le_magics():
    return {VXD_SIGNATURE: "IMAGE_VXD_SIGNATURE", LX_SIGNATURE: "IMAGE_LX_SIGNATURE"}


def image_le_magics_s():
    return {VXD_SIGNATURE: "VXD_SIGNATURE", LX_SIGNATURE: "LX_SIGNATURE"}


def image_le_cpus_s():
    return {
        0x01: "80286",
        0x02: "80386",
        0x03: "80486",
        0x04: "80586",
        0x20: "i860",
        0x21: "N11",
        0x40: "R2000",
        0x41: "R6000",
        0x42: "R4000",
    }


def image_le_oss_s():
    return {
        0x00: "Unknown (any new-format OS)",
        0x01: "OS/2 (default)",
        0x02: "Windows",
        0x03: "DOS 4.x",
        0x04: "Windows 386",
    }


def image_le_mflags_s():
    return {}