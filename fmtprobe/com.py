"""MS-DOS COM programs."""

from __future__ import annotations

import enum

from .binary import Binary, Endian, FileType, MapMode, MemoryMap, MemoryRecord, MemoryType, Mode, OsName


class ComType(enum.IntEnum):
    """Kind of COM file."""

    UNKNOWN = 0
    EXECUTABLE = 1


class COM(Binary):
    """A flat 16-bit program loaded at offset 0x100 of a 64 KiB segment."""

    ADDRESS_BEGIN = 0x100
    IMAGE_SIZE = 0x10000

    def __init__(self, data=b"", is_image=False, module_address=-1):
        super().__init__(data, is_image, module_address)
        self._base_address = self.ADDRESS_BEGIN

    def is_valid(self):
        return self.size() <= self.IMAGE_SIZE - self.ADDRESS_BEGIN

    def memory_map(self, map_mode=MapMode.UNKNOWN):
        """Map the PSP, the program, the free rest of the segment and any overlay."""
        total = self.size()
        capacity = self.IMAGE_SIZE - self.ADDRESS_BEGIN
        code_size = min(total, capacity)

        result = MemoryMap(
            module_address=self.module_address(),
            entry_point_address=self.module_address(),
            binary_size=total,
            image_size=self.image_size(),
            file_type=self.file_type(),
            mode=self.mode(),
            arch=self.arch(),
            endian=self.endian(),
            type_name=self.type_as_string(),
        )

        result.records.append(
            MemoryRecord(
                index=1, address=0, segment="FLAT", offset=-1, size=self.ADDRESS_BEGIN, is_virtual=True
            )
        )
        result.records.append(
            MemoryRecord(index=1, address=self.ADDRESS_BEGIN, segment="FLAT", offset=0, size=code_size)
        )

        free = capacity - total
        if free > 0:
            result.records.append(
                MemoryRecord(
                    index=1,
                    address=self.ADDRESS_BEGIN + code_size,
                    segment="FLAT",
                    offset=-1,
                    size=free,
                    is_virtual=True,
                )
            )

        if total > code_size:
            result.records.append(
                MemoryRecord(
                    index=1,
                    address=-1,
                    offset=code_size,
                    size=total - code_size,
                    type=MemoryType.OVERLAY,
                )
            )

        return result

    def arch(self):
        return "8086"

    def mode(self):
        return Mode.BITS_16

    def endian(self):
        return Endian.LITTLE

    def image_size(self):
        return self.IMAGE_SIZE

    def file_type(self):
        return FileType.COM

    def type(self):
        return ComType.EXECUTABLE

    def os_name(self):
        return OsName.MSDOS

    def type_id_to_string(self, type_id):
        if type_id == ComType.EXECUTABLE:
            return "EXE"
        return "Unknown"