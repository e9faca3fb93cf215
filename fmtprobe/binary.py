"""Random-access view over binary data and the records describing its layout."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from functools import lru_cache

_HEX_DIGITS = "0123456789abcdefABCDEF"


class FileType(enum.Enum):
    """Kinds of file a parser can recognise."""

    UNKNOWN = "unknown"
    BINARY = "binary"
    COM = "com"
    MSDOS = "msdos"
    LE = "le"
    LX = "lx"
    AMIGAHUNK = "amigahunk"
    MP3 = "mp3"


class Mode(enum.Enum):
    """Addressing mode of executable code."""

    UNKNOWN = "unknown"
    BITS_16 = "16"
    BITS_16_SEG = "16SEG"
    BITS_32 = "32"
    BITS_64 = "64"


class Endian(enum.Enum):
    """Byte order of a format."""

    UNKNOWN = "unknown"
    LITTLE = "little"
    BIG = "big"


class MapMode(enum.Enum):
    """Granularity of a memory map."""

    UNKNOWN = "unknown"
    SEGMENTS = "segments"
    REGIONS = "regions"
    OBJECTS = "objects"
    MAPS = "maps"


class MemoryType(enum.Enum):
    """Role of one record of a memory map."""

    UNKNOWN = "unknown"
    HEADER = "header"
    LOADSEGMENT = "loadsegment"
    NOLOADABLE = "noloadable"
    FILESEGMENT = "filesegment"
    OVERLAY = "overlay"


class OsName(enum.Enum):
    """Operating system a file is meant for."""

    UNKNOWN = "unknown"
    AMIGA = "Amiga"
    MSDOS = "MSDOS"
    OS2 = "OS/2"
    WINDOWS = "Windows"


@dataclass
class MemoryRecord:
    """One region of a file and where it lands in memory."""

    index: int = 0
    type: MemoryType = MemoryType.UNKNOWN
    offset: int = 0
    size: int = 0
    address: int = 0
    segment: str = ""
    name: str = ""
    is_virtual: bool = False


@dataclass
class MemoryMap:
    """Layout of a whole file."""

    module_address: int = 0
    binary_size: int = 0
    image_size: int = 0
    entry_point_address: int = 0
    file_type: FileType = FileType.UNKNOWN
    mode: Mode = Mode.UNKNOWN
    arch: str = ""
    endian: Endian = Endian.UNKNOWN
    type_name: str = ""
    records: list[MemoryRecord] = field(default_factory=list)


@dataclass
class FileFormatInfo:
    """Summary of a recognised file."""

    is_valid: bool = False
    size: int = 0
    file_type: FileType = FileType.UNKNOWN
    ext: str = ""
    version: str = ""
    options: str = ""
    os_name: OsName = OsName.UNKNOWN
    os_version: str = ""
    arch: str = ""
    mode: Mode = Mode.UNKNOWN
    type_name: str = ""
    endian: Endian = Endian.UNKNOWN


@lru_cache(maxsize=256)
def _parse_signature(signature: str) -> tuple[tuple[int, int], ...]:
    """Turn a signature into (value, mask) pairs, one per byte.

    Quoted text stands for its ASCII bytes, hex digits for nibbles and
    '.' for a nibble that matches anything.
    """
    pattern: list[tuple[int, int]] = []
    nibbles: list[str] = []
    chars = iter(signature)
    for char in chars:
        if char == "'":
            if nibbles:
                raise ValueError(f"odd number of hex digits in signature {signature!r}")
            for quoted in chars:
                if quoted == "'":
                    break
                pattern.append((ord(quoted) & 0xFF, 0xFF))
            else:
                raise ValueError(f"unterminated quote in signature {signature!r}")
        elif char.isspace():
            continue
        elif char in _HEX_DIGITS or char == ".":
            nibbles.append(char)
            if len(nibbles) == 2:
                value = mask = 0
                for nibble in nibbles:
                    value <<= 4
                    mask <<= 4
                    if nibble != ".":
                        value |= int(nibble, 16)
                        mask |= 0xF
                pattern.append((value, mask))
                nibbles.clear()
        else:
            raise ValueError(f"unexpected character {char!r} in signature {signature!r}")
    if nibbles:
        raise ValueError(f"odd number of hex digits in signature {signature!r}")
    return tuple(pattern)


class Binary:
    """Binary data with typed reads, writes and signature matching.

    Reads outside the data yield zero bytes; writes outside it raise
    IndexError.
    """

    TYPE_NAMES: dict[int, str] = {0: "Unknown"}

    def __init__(self, data=b"", is_image=False, module_address=-1):
        if hasattr(data, "read"):
            data = data.read()
        self._data = bytearray(data)
        self.is_image = is_image
        self._module_address = module_address
        self._base_address = 0

    @property
    def data(self) -> bytes:
        """A copy of the current contents."""
        return bytes(self._data)

    def size(self) -> int:
        return len(self._data)

    def _read(self, offset: int, count: int) -> bytes:
        if offset < 0 or offset >= len(self._data):
            return bytes(count)
        return bytes(self._data[offset : offset + count]).ljust(count, b"\0")

    def _write(self, offset: int, raw: bytes) -> None:
        if offset < 0 or offset + len(raw) > len(self._data):
            raise IndexError(
                f"write of {len(raw)} bytes at offset {offset} is outside data of {len(self._data)} bytes"
            )
        self._data[offset : offset + len(raw)] = raw

    def _read_int(self, offset: int, count: int, big_endian: bool) -> int:
        return int.from_bytes(self._read(offset, count), "big" if big_endian else "little")

    def _write_int(self, offset: int, value: int, count: int, big_endian: bool) -> None:
        self._write(offset, value.to_bytes(count, "big" if big_endian else "little"))

    def read_uint8(self, offset):
        return self._read(offset, 1)[0]

    def read_uint16(self, offset, big_endian=False):
        return self._read_int(offset, 2, big_endian)

    def read_uint32(self, offset, big_endian=False):
        return self._read_int(offset, 4, big_endian)

    def write_uint8(self, offset, value):
        self._write_int(offset, value, 1, False)

    def write_uint16(self, offset, value, big_endian=False):
        self._write_int(offset, value, 2, big_endian)

    def write_uint32(self, offset, value, big_endian=False):
        self._write_int(offset, value, 4, big_endian)

    def compare_signature(self, signature, offset=0):
        """Tell whether the bytes at offset match the signature."""
        pattern = _parse_signature(signature)
        if offset < 0 or offset + len(pattern) > len(self._data):
            return False
        return all(
            (self._data[offset + position] & mask) == value
            for position, (value, mask) in enumerate(pattern)
        )

    def is_offset_valid(self, offset):
        return 0 <= offset < len(self._data)

    def module_address(self):
        if self._module_address != -1:
            return self._module_address
        return self._base_address

    def memory_map(self, map_mode=MapMode.UNKNOWN):
        """Map the whole data as a single file segment."""
        result = MemoryMap(
            module_address=self.module_address(),
            binary_size=self.size(),
            image_size=self.size(),
            entry_point_address=self.module_address(),
            file_type=self.file_type(),
            mode=self.mode(),
            arch=self.arch(),
            endian=self.endian(),
            type_name=self.type_as_string(),
        )
        if self.size():
            result.records.append(
                MemoryRecord(
                    type=MemoryType.FILESEGMENT,
                    offset=0,
                    size=self.size(),
                    address=self.module_address(),
                )
            )
        return result

    def raw_size(self):
        """End of the furthest file-backed, non-overlay record of the memory map."""
        return max(
            (
                record.offset + record.size
                for record in self.memory_map().records
                if record.offset >= 0 and not record.is_virtual and record.type != MemoryType.OVERLAY
            ),
            default=0,
        )

    def is_valid(self):
        return True

    def file_type(self):
        return FileType.BINARY

    def file_format_ext(self):
        return "bin"

    def file_format_size(self):
        return self.size()

    def mode(self):
        return Mode.UNKNOWN

    def arch(self):
        return ""

    def endian(self):
        return Endian.LITTLE

    def version(self):
        return ""

    def options(self):
        return ""

    def os_name(self):
        return OsName.UNKNOWN

    def os_version(self):
        return ""

    def type(self):
        return 0

    def type_id_to_string(self, type_id):
        """Name of a type identifier, or "Unknown" for one without a name."""
        return self.TYPE_NAMES.get(int(type_id), "Unknown")

    def type_as_string(self):
        return self.type_id_to_string(self.type())

    def file_format_info(self):
        """Summarise the data, or report it as not valid."""
        info = FileFormatInfo(is_valid=self.is_valid())
        if info.is_valid:
            info.size = self.file_format_size()
            info.file_type = self.file_type()
            info.ext = self.file_format_ext()
            info.version = self.version()
            info.options = self.options()
            info.os_name = self.os_name()
            info.os_version = self.os_version()
            info.arch = self.arch()
            info.mode = self.mode()
            info.type_name = self.type_as_string()
            info.endian = self.endian()
        return info