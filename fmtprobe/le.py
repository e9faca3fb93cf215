"""Linear executables: the LE (VxD) and LX formats behind an MS-DOS stub."""

from __future__ import annotations

from .binary import Binary, Endian, FileType, MapMode, MemoryMap, MemoryRecord, MemoryType, Mode, OsName
from .le_defs import (
    DOS_SIGNATURE_MZ,
    LFANEW_OFFSET,
    LX_SIGNATURE,
    VXD_SIGNATURE,
    LeType,
    ObjectEntry,
    PageMapLE,
    PageMapLX,
    VxdHeader,
    image_le_cpus_s,
)
from .le_header import HeaderView

_UINT32_MASK = 0xFFFFFFFF
_INT32_LIMIT = 0x80000000


class LE(Binary):
    """An LE or LX executable."""

    def dos_magic(self):
        """The two-byte signature at the start of the MS-DOS stub."""
        return self.read_uint16(0)

    def lfanew(self):
        """Signed offset of the new-format header, stored in the MS-DOS stub."""
        value = self.read_uint32(LFANEW_OFFSET)
        return value - (1 << 32) if value >= _INT32_LIMIT else value

    def _signature(self):
        return self.read_uint16(self.lfanew())

    def is_valid(self):
        if self.dos_magic() != DOS_SIGNATURE_MZ:
            return False
        lfanew = self.lfanew()
        if not 0 < lfanew < (self.size() & _UINT32_MASK):
            return False
        return self.read_uint16(lfanew) in (VXD_SIGNATURE, LX_SIGNATURE)

    def is_le(self):
        return self._signature() == VXD_SIGNATURE

    def is_lx(self):
        return self._signature() == LX_SIGNATURE

    def header_offset(self):
        """Offset of the LE/LX header, or -1 when it lies outside the data."""
        offset = self.lfanew()
        return offset if self.is_offset_valid(offset) else -1

    def header_size(self):
        return VxdHeader.SIZE

    def _view(self):
        return HeaderView(self, self.header_offset())

    def header(self):
        return self._view().read()

    def header_field(self, name):
        """Value of one header field, or 0 when there is no header."""
        return self._view().get(name)

    def set_header_field(self, name, value):
        """Write one header field; ignored when there is no header."""
        self._view().set(name, value)

    def objects(self):
        """The entries of the object table."""
        view = self._view()
        start = self.header_offset() + self.header_field("objtab")
        count = self.header_field("objcnt")
        return [view.read_object(start + n * ObjectEntry.SIZE) for n in range(count)]

    def _map_table(self):
        return self.header_offset() + self.header_field("objmap"), self.header_field("mpages")

    def maps_le(self):
        """The page map entries of an LE file."""
        view = self._view()
        start, count = self._map_table()
        return [view.read_o16_map(start + n * PageMapLE.SIZE) for n in range(count)]

    def maps_lx(self):
        """The page map entries of an LX file."""
        view = self._view()
        start, count = self._map_table()
        return [view.read_o32_map(start + n * PageMapLX.SIZE) for n in range(count)]

    def memory_map(self, map_mode=MapMode.UNKNOWN):
        """Map the header, the objects (or their pages) and any overlay."""
        view = self._view()
        header = view.read()
        result = MemoryMap(
            arch=self.arch(),
            mode=self.mode(),
            endian=self.endian(),
            type_name=self.type_as_string(),
            file_type=self.file_type(),
            binary_size=self.size(),
        )
        records = result.records

        objects = self.objects()
        if 0 < header.startobj <= len(objects):
            result.entry_point_address = objects[header.startobj - 1].base + header.eip

        page_size = header.pagesize
        data_page = header.datapage
        map_offset = self.header_offset() + header.objmap

        if data_page > 0:
            records.append(
                MemoryRecord(address=0, offset=0, size=data_page, name="Header", type=MemoryType.HEADER)
            )

        loader_size = 0
        if header.mpages > 0:
            loader_size = data_page + (((header.mpages - 1) * page_size) & _UINT32_MASK) + header.lastpagesize

        index = 0
        max_offset = 0
        max_address = 0

        for number, obj in enumerate(objects, start=1):
            object_min = -1
            object_max = 0
            address = obj.base
            page_count = obj.mapsize if obj.mapsize < _INT32_LIMIT else 0

            for page in range(page_count):
                slot = (obj.pagemap - 1 + page) & _UINT32_MASK
                record = MemoryRecord()

                if result.file_type == FileType.LE:
                    entry = view.read_o16_map(map_offset + slot * PageMapLE.SIZE)
                    page_offset = 0
                    if entry.page_index:
                        page_offset = (((entry.page_index - 1) * page_size) & _UINT32_MASK) + data_page
                    record.offset = page_offset
                    record.size = min(page_size, loader_size - page_offset)
                elif result.file_type == FileType.LX:
                    entry = view.read_o32_map(map_offset + slot * PageMapLX.SIZE)
                    record.offset = data_page + entry.page_data_offset
                    record.size = entry.page_size

                if object_min == -1:
                    object_min = record.offset
                object_min = min(object_min, record.offset)
                object_max = max(object_max, record.offset + record.size)

                record.address = address
                address += record.size

                if map_mode == MapMode.MAPS:
                    record.index = index
                    record.name = f"Map({obj.pagemap + page})"
                    record.type = MemoryType.LOADSEGMENT
                    records.append(record)
                    index += 1

            if map_mode in (MapMode.OBJECTS, MapMode.UNKNOWN):
                records.append(
                    MemoryRecord(
                        index=index,
                        address=obj.base,
                        offset=object_min,
                        size=object_max - object_min,
                        name=f"Object({number})",
                        type=MemoryType.LOADSEGMENT,
                    )
                )
                index += 1

            max_offset = max(max_offset, object_max)
            max_address = max(max_address, address)

        result.module_address = self.module_address()
        result.image_size = max_address

        overlay_size = result.binary_size - max_offset
        if overlay_size > 0:
            records.append(
                MemoryRecord(
                    address=-1, offset=max_offset, size=overlay_size, name="Overlay", type=MemoryType.OVERLAY
                )
            )

        return result

    def mode(self):
        if self._signature() == LX_SIGNATURE:
            return Mode.BITS_32
        return Mode.BITS_16_SEG

    def arch(self):
        return image_le_cpus_s().get(self.header_field("cpu"), "Unknown")

    def endian(self):
        return Endian.LITTLE

    def file_type(self):
        if self.is_lx() and not self.is_le():
            return FileType.LX
        return FileType.LE

    def type(self):
        return LeType.EXE

    def os_name(self):
        return {
            1: OsName.OS2,
            2: OsName.WINDOWS,
            3: OsName.MSDOS,
            4: OsName.WINDOWS,
        }.get(self.header_field("os"), OsName.UNKNOWN)

    def os_version(self):
        return {3: "4.X", 4: "386"}.get(self.header_field("os"), "")

    def type_id_to_string(self, type_id):
        if type_id == LeType.EXE:
            return "EXE"
        return "Unknown"

    @staticmethod
    def map_modes():
        return [MapMode.OBJECTS, MapMode.MAPS]

    def module_address(self):
        return 0