import pytest

from fmtprobe.binary import FileType, MapMode, MemoryType, Mode, OsName
from fmtprobe.le import LE
from fmtprobe.le_defs import (
    LX_SIGNATURE,
    VXD_SIGNATURE,
    LeType,
    ObjectEntry,
    PageMapLE,
    PageMapLX,
    VxdHeader,
)

HEADER_AT = 0x80
OBJTAB = 0xB0
OBJMAP = 0xE0
DATAPAGE = 0x200


def _stub(size, lfanew=HEADER_AT):
    data = bytearray(size)
    data[0:2] = b"MZ"
    data[0x3C:0x40] = lfanew.to_bytes(4, "little")
    return data


def _put(data, offset, raw):
    data[offset : offset + len(raw)] = raw


LX_OBJECTS = [
    ObjectEntry(size=0x100, base=0x10000, flags=5, pagemap=1, mapsize=1),
    ObjectEntry(size=0x80, base=0x20000, flags=3, pagemap=2, mapsize=1),
]
LX_MAPS = [
    PageMapLX(page_data_offset=0, page_size=0x100, page_flags=0),
    PageMapLX(page_data_offset=0x100, page_size=0x80, page_flags=0),
]


def _lx_header(**overrides):
    values = dict(
        magic=LX_SIGNATURE,
        cpu=2,
        os=1,
        mpages=2,
        startobj=1,
        eip=0x10,
        pagesize=0x100,
        lastpagesize=0x80,
        objtab=OBJTAB,
        objcnt=2,
        objmap=OBJMAP,
        datapage=DATAPAGE,
    )
    values.update(overrides)
    return VxdHeader(**values)


def make_lx(overlay=0x20, **overrides):
    data = _stub(DATAPAGE + 0x180 + overlay)
    _put(data, HEADER_AT, _lx_header(**overrides).to_bytes())
    for n, obj in enumerate(LX_OBJECTS):
        _put(data, HEADER_AT + OBJTAB + n * ObjectEntry.SIZE, obj.to_bytes())
    for n, entry in enumerate(LX_MAPS):
        _put(data, HEADER_AT + OBJMAP + n * PageMapLX.SIZE, entry.to_bytes())
    return LE(bytes(data))


LE_MAPS = [PageMapLE(page_number=(0, 0, 1)), PageMapLE(page_number=(0, 0, 2))]
LE_OBJECT = ObjectEntry(size=0x180, base=0x1000, pagemap=1, mapsize=2)


def make_le(os_value=4):
    data = _stub(DATAPAGE + 0x180)
    header = VxdHeader(
        magic=VXD_SIGNATURE,
        cpu=3,
        os=os_value,
        mpages=2,
        startobj=1,
        eip=4,
        pagesize=0x100,
        lastpagesize=0x80,
        objtab=OBJTAB,
        objcnt=1,
        objmap=OBJMAP,
        datapage=DATAPAGE,
    )
    _put(data, HEADER_AT, header.to_bytes())
    _put(data, HEADER_AT + OBJTAB, LE_OBJECT.to_bytes())
    for n, entry in enumerate(LE_MAPS):
        _put(data, HEADER_AT + OBJMAP + n * PageMapLE.SIZE, entry.to_bytes())
    return LE(bytes(data))


def test_lx_is_valid_and_recognised():
    lx = make_lx()
    assert lx.is_valid() is True
    assert lx.is_lx() is True
    assert lx.is_le() is False
    assert lx.file_type() == FileType.LX
    assert lx.mode() == Mode.BITS_32


def test_le_is_recognised():
    le = make_le()
    assert le.is_valid() is True
    assert le.is_le() is True
    assert le.file_type() == FileType.LE
    assert le.mode() == Mode.BITS_16_SEG


def test_invalid_without_mz():
    data = bytearray(make_lx().data)
    data[0:2] = b"ZM"
    assert LE(bytes(data)).is_valid() is False


def test_invalid_with_wrong_signature():
    data = bytearray(make_lx().data)
    data[HEADER_AT : HEADER_AT + 2] = b"PE"
    assert LE(bytes(data)).is_valid() is False


def test_invalid_when_lfanew_outside_file():
    data = _stub(0x100, lfanew=0x1000)
    le = LE(bytes(data))
    assert le.is_valid() is False
    assert le.header_offset() == -1
    assert le.header() == VxdHeader()
    assert le.header_field("cpu") == 0


def test_lfanew_and_dos_magic():
    lx = make_lx()
    assert lx.lfanew() == HEADER_AT
    assert lx.dos_magic() == 0x5A4D
    assert lx.header_offset() == HEADER_AT


def test_negative_lfanew_is_signed():
    data = _stub(0x100, lfanew=0xFFFFFFF0)
    le = LE(bytes(data))
    assert le.lfanew() == -16
    assert le.is_valid() is False


def test_header_round_trip():
    lx = make_lx()
    assert lx.header() == _lx_header()
    assert lx.header_size() == VxdHeader.SIZE


def test_header_field_and_prefix():
    lx = make_lx()
    assert lx.header_field("objcnt") == 2
    assert lx.header_field("e32_objcnt") == 2


def test_set_header_field():
    lx = make_lx()
    lx.set_header_field("heapsize", 0x12345678)
    assert lx.header_field("heapsize") == 0x12345678
    assert lx.header().heapsize == 0x12345678


def test_unknown_header_field():
    with pytest.raises(KeyError):
        make_lx().header_field("nonexistent")


def test_objects_and_maps():
    lx = make_lx()
    assert lx.objects() == LX_OBJECTS
    assert lx.maps_lx() == LX_MAPS
    le = make_le()
    assert le.objects() == [LE_OBJECT]
    assert le.maps_le() == LE_MAPS


def test_lx_memory_map_objects():
    lx = make_lx()
    memory = lx.memory_map(MapMode.OBJECTS)
    records = memory.records
    assert [r.type for r in records] == [
        MemoryType.HEADER,
        MemoryType.LOADSEGMENT,
        MemoryType.LOADSEGMENT,
        MemoryType.OVERLAY,
    ]
    assert (records[0].offset, records[0].size) == (0, DATAPAGE)
    assert (records[1].offset, records[1].size, records[1].address) == (DATAPAGE, 0x100, 0x10000)
    assert (records[2].offset, records[2].size, records[2].address) == (DATAPAGE + 0x100, 0x80, 0x20000)
    assert records[1].name == "Object(1)"
    assert records[2].name == "Object(2)"
    assert (records[3].offset, records[3].size) == (DATAPAGE + 0x180, 0x20)
    assert memory.entry_point_address == 0x10000 + 0x10
    assert memory.image_size == 0x20000 + 0x80
    assert memory.module_address == 0
    assert memory.binary_size == lx.size()


def test_lx_memory_map_unknown_matches_objects():
    lx = make_lx()
    assert lx.memory_map() == lx.memory_map(MapMode.OBJECTS)


def test_lx_memory_map_maps():
    records = make_lx().memory_map(MapMode.MAPS).records
    loads = [r for r in records if r.type == MemoryType.LOADSEGMENT]
    assert [r.name for r in loads] == ["Map(1)", "Map(2)"]
    assert [r.index for r in loads] == [0, 1]
    assert [r.size for r in loads] == [m.page_size for m in LX_MAPS]


def test_no_overlay_when_file_ends_with_pages():
    records = make_lx(overlay=0).memory_map().records
    assert [r.type for r in records] == [
        MemoryType.HEADER,
        MemoryType.LOADSEGMENT,
        MemoryType.LOADSEGMENT,
    ]


def test_le_memory_map_pages():
    le = make_le()
    memory = le.memory_map(MapMode.MAPS)
    loads = [r for r in memory.records if r.type == MemoryType.LOADSEGMENT]
    assert [(r.offset, r.size) for r in loads] == [(DATAPAGE, 0x100), (DATAPAGE + 0x100, 0x80)]
    assert [r.address for r in loads] == [0x1000, 0x1100]
    objects = le.memory_map(MapMode.OBJECTS).records
    obj = [r for r in objects if r.type == MemoryType.LOADSEGMENT][0]
    assert (obj.offset, obj.size) == (DATAPAGE, 0x180)
    assert memory.entry_point_address == 0x1000 + 4


def test_entry_point_absent_when_startobj_out_of_range():
    lx = make_lx(startobj=5)
    assert lx.memory_map().entry_point_address == 0


def test_arch_and_os():
    lx = make_lx()
    assert lx.arch() == "80386"
    assert lx.os_name() == OsName.OS2
    assert lx.os_version() == ""
    le = make_le(os_value=4)
    assert le.arch() == "80486"
    assert le.os_name() == OsName.WINDOWS
    assert le.os_version() == "386"
    dos = make_le(os_value=3)
    assert dos.os_name() == OsName.MSDOS
    assert dos.os_version() == "4.X"


def test_unknown_cpu():
    assert make_lx(cpu=0x99).arch() == "Unknown"


def test_type_strings():
    lx = make_lx()
    assert lx.type() == LeType.EXE
    assert lx.type_as_string() == "EXE"
    assert lx.type_id_to_string(LeType.UNKNOWN) == "Unknown"


def test_map_modes():
    assert LE.map_modes() == [MapMode.OBJECTS, MapMode.MAPS]
    assert make_lx().module_address() == 0