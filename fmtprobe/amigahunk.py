"""Amiga hunk executables and object files."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .binary import (
    Binary,
    Endian,
    FileFormatInfo,
    FileType,
    MapMode,
    MemoryMap,
    MemoryRecord,
    MemoryType,
    Mode,
    OsName,
)

_UINT32_MASK = 0xFFFFFFFF
_HUNK_ID_MASK = 0x3FFFFFFF
_MAX_HEADER_TABLE = 100


class HunkType(enum.IntEnum):
    """Identifiers of the hunks that make up a file."""

    UNIT = 0x3E7
    NAME = 0x3E8
    CODE = 0x3E9
    DATA = 0x3EA
    BSS = 0x3EB
    RELOC32 = 0x3EC
    RELOC16 = 0x3ED
    RELOC8 = 0x3EE
    EXT = 0x3EF
    SYMBOL = 0x3F0
    DEBUG = 0x3F1
    END = 0x3F2
    HEADER = 0x3F3
    OVERLAY = 0x3F5
    BREAK = 0x3F6
    DREL32 = 0x3F7
    DREL16 = 0x3F8
    DREL8 = 0x3F9
    LIB = 0x3FA
    INDEX = 0x3FB
    RELOC32SHORT = 0x3FC
    RELRELOC32 = 0x3FD
    ABSRELOC16 = 0x3FE
    # Executables reuse the DREL32 identifier for short relocations.
    DREL32EXE = 0x3F7
    PPC_CODE = 0x4E9
    RELRELOC26 = 0x4EC


class AmigaType(enum.IntEnum):
    """Kind of hunk file."""

    UNKNOWN = 0
    EXECUTABLE = 1
    OBJECT = 2


@dataclass(frozen=True)
class Hunk:
    """One hunk: its identifier and the bytes it spans."""

    id: int
    offset: int
    size: int


_LOADABLE = frozenset({HunkType.CODE, HunkType.DATA, HunkType.PPC_CODE, HunkType.BSS})
_CODE = frozenset({HunkType.CODE, HunkType.PPC_CODE})


def hunk_type_to_string(hunk_type):
    """Name of a hunk identifier, or HUNK_ followed by its hex value."""
    try:
        return f"HUNK_{HunkType(hunk_type).name}"
    except ValueError:
        return f"HUNK_{hunk_type:x}"


def hunks_by_type(hunks, hunk_type):
    """The hunks with the given identifier, in order."""
    return [hunk for hunk in hunks if hunk.id == hunk_type]


def is_hunk_present(hunks, hunk_type):
    """Tell whether any hunk has the given identifier."""
    return any(hunk.id == hunk_type for hunk in hunks)


class AmigaHunk(Binary):
    """A file in the Amiga hunk format."""

    IMAGE_BASE = 0x10000

    def is_valid(self):
        if self.size() <= 8:
            return False
        return self.read_uint32(0, True) in (HunkType.HEADER, HunkType.UNIT)

    @staticmethod
    def map_modes():
        return [MapMode.SEGMENTS, MapMode.REGIONS]

    def _long(self, offset):
        return self.read_uint32(offset, True)

    def hunks(self):
        """Walk the file and list its hunks until an unknown one or the end."""
        result = []
        current = 0
        total = self.size()

        while True:
            hunk_id = self._long(current) & _HUNK_ID_MASK
            start = current
            current += 4
            stop = False

            if hunk_id == HunkType.HEADER:
                if self._long(current) == 0:
                    current += 4
                table_size = min(self._long(current), _MAX_HEADER_TABLE)
                current += 12
                current += 4 * table_size
            elif hunk_id in (HunkType.CODE, HunkType.DATA, HunkType.PPC_CODE, HunkType.DEBUG):
                length = self._long(current)
                current += 4
                current += (length * 4) & _UINT32_MASK
            elif hunk_id == HunkType.RELOC32:
                while True:
                    count = self._long(current)
                    current += 4
                    if count == 0:
                        break
                    current += 4
                    current += (count * 4) & _UINT32_MASK
            elif hunk_id == HunkType.BSS:
                current += 4
            elif hunk_id == HunkType.SYMBOL:
                while True:
                    name_longs = self._long(current)
                    current += 4
                    if name_longs == 0:
                        break
                    current += (name_longs * 4) & _UINT32_MASK
                    current += 4
            elif hunk_id == HunkType.END:
                pass
            else:
                stop = True

            result.append(Hunk(id=hunk_id, offset=start, size=current - start))

            if stop or current >= total:
                break

        return result

    def arch(self, hunks=None):
        if hunks is None:
            hunks = self.hunks()
        return "PPC" if is_hunk_present(hunks, HunkType.PPC_CODE) else "68K"

    def mode(self, hunks=None):
        if hunks is None:
            hunks = self.hunks()
        return Mode.BITS_32 if is_hunk_present(hunks, HunkType.RELOC32) else Mode.BITS_16

    def endian(self):
        return Endian.BIG

    def memory_map(self, map_mode=MapMode.UNKNOWN):
        """Map the hunks either as file regions or as loaded segments."""
        if map_mode == MapMode.UNKNOWN:
            map_mode = MapMode.SEGMENTS

        hunks = self.hunks()
        total = self.size()
        result = MemoryMap(
            module_address=self.module_address(),
            binary_size=total,
            file_type=self.file_type(),
            mode=self.mode(hunks),
            arch=self.arch(hunks),
            endian=self.endian(),
            type_name=self.type_as_string(),
        )
        records = result.records

        if map_mode == MapMode.REGIONS:
            for hunk in hunks:
                records.append(
                    MemoryRecord(
                        index=len(records),
                        type=MemoryType.FILESEGMENT,
                        offset=hunk.offset,
                        size=hunk.size,
                        address=hunk.offset,
                        name=hunk_type_to_string(hunk.id),
                    )
                )
                if hunk.id in _CODE:
                    result.entry_point_address = hunk.offset + 8
            result.image_size = total
        elif map_mode == MapMode.SEGMENTS:
            result.module_address = self.IMAGE_BASE
            address = result.module_address

            for hunk in hunks:
                name = hunk_type_to_string(hunk.id)
                if hunk.id not in _LOADABLE:
                    records.append(
                        MemoryRecord(
                            index=len(records),
                            type=MemoryType.FILESEGMENT,
                            offset=hunk.offset,
                            size=hunk.size,
                            address=-1,
                            name=name,
                        )
                    )
                    continue

                records.append(
                    MemoryRecord(
                        index=len(records),
                        type=MemoryType.NOLOADABLE,
                        offset=hunk.offset,
                        size=8,
                        address=-1,
                        name=name,
                    )
                )
                segment = MemoryRecord(
                    index=len(records),
                    type=MemoryType.LOADSEGMENT,
                    size=hunk.size - 8,
                    address=address,
                    name=name,
                )
                if segment.size:
                    segment.offset = hunk.offset + 8
                else:
                    segment.is_virtual = True
                    if hunk.id == HunkType.BSS:
                        segment.size = (self._long(hunk.offset + 4) * 4) & _UINT32_MASK
                        segment.offset = -1
                records.append(segment)

                if hunk.id in _CODE:
                    result.entry_point_address = segment.address
                address += segment.size

            result.image_size = address - result.module_address

        return result

    def file_type(self):
        return FileType.AMIGAHUNK

    def file_format_ext(self):
        return ""

    def file_format_size(self):
        """End of the furthest HUNK_END, or 0 when there is none."""
        return max(
            (hunk.offset + hunk.size for hunk in hunks_by_type(self.hunks(), HunkType.END)),
            default=0,
        )

    def file_format_info(self):
        info = FileFormatInfo(is_valid=self.is_valid())
        if info.is_valid:
            hunks = self.hunks()
            info.size = self.file_format_size()
            info.file_type = self.file_type()
            info.ext = self.file_format_ext()
            info.version = self.version()
            info.options = self.options()
            info.os_name = OsName.AMIGA
            info.arch = self.arch(hunks)
            info.mode = self.mode(hunks)
            info.type_name = self.type_as_string()
            info.endian = self.endian()
            if info.size == 0:
                info.is_valid = False
        return info

    def type(self):
        magic = self.read_uint32(0, True)
        if magic == HunkType.UNIT:
            return AmigaType.OBJECT
        return AmigaType.EXECUTABLE

    def type_id_to_string(self, type_id):
        if type_id == AmigaType.EXECUTABLE:
            return "EXE"
        if type_id == AmigaType.OBJECT:
            return "Object"
        return "Unknown"