from fmtprobe.binary import FileType, MemoryType
from fmtprobe.mp3 import MP3

FRAME_HEADER = b"\xff\xfb\x90\x00"  # MPEG-1 layer III, 128 kbit/s, 44100 Hz
PADDED_HEADER = b"\xff\xfb\x92\x00"
LAYER_ONE_HEADER = b"\xff\xff\x90\x00"
RESERVED_RATE_HEADER = b"\xff\xfb\x9c\x00"


def _id3(major, tag_size=0):
    return b"ID3" + bytes([major, 0, 0]) + bytes([0, 0, 0, tag_size]) + bytes(tag_size)


def _frame_size(header):
    return MP3(header + bytes(8)).decode_frame(0)


def _file_with_frames(count, tag_size=16):
    size = _frame_size(FRAME_HEADER)
    frame = FRAME_HEADER + bytes(size - len(FRAME_HEADER))
    return _id3(3, tag_size) + frame * count


def test_decode_frame_layer_three():
    assert _frame_size(FRAME_HEADER) == 417


def test_padding_adds_one_byte():
    assert _frame_size(PADDED_HEADER) == _frame_size(FRAME_HEADER) + 1


def test_layer_one_frames_are_whole_slots():
    size = _frame_size(LAYER_ONE_HEADER)
    assert size > 0
    assert size % 4 == 0


def test_reserved_frequency_gives_no_frame():
    assert _frame_size(RESERVED_RATE_HEADER) == 0


def test_zero_header_gives_no_frame():
    assert MP3(bytes(16)).decode_frame(0) == 0
    assert MP3(b"").decode_frame(0) == 0


def test_valid_and_versions():
    for major, name in ((2, "3.2"), (3, "3.3"), (4, "3.4")):
        mp3 = MP3(_id3(major, 0x30))
        assert mp3.is_valid()
        assert mp3.version() == name


def test_not_valid_without_tag_or_when_short():
    assert not MP3(bytes(64)).is_valid()
    assert MP3(bytes(64)).version() == ""
    short = MP3(_id3(3, 4))
    assert short.size() <= 0x20
    assert not short.is_valid()
    assert short.version() == ""


def test_memory_map_header_and_frames():
    data = _file_with_frames(2)
    memory_map = MP3(data).memory_map()
    records = memory_map.records
    assert memory_map.binary_size == len(data)
    assert [r.name for r in records] == ["Header", "Frame", "Frame"]
    assert records[0].type == MemoryType.HEADER
    assert records[0].offset == 0
    assert records[0].size == 26
    assert [r.index for r in records] == [0, 1, 2]
    for previous, current in zip(records, records[1:]):
        assert current.offset == previous.offset + previous.size
        assert current.type == MemoryType.FILESEGMENT
        assert current.address == -1
    assert records[-1].offset + records[-1].size == len(data)


def test_memory_map_without_tag_is_empty():
    memory_map = MP3(bytes(64)).memory_map()
    assert memory_map.records == []
    assert memory_map.binary_size == 64


def test_file_format_size_covers_tag_and_frames():
    data = _file_with_frames(3)
    assert MP3(data).file_format_size() == len(data)


def test_file_format_size_ignores_trailing_garbage_free_zeros():
    data = _file_with_frames(1) + bytes(40)
    assert MP3(data).file_format_size() == len(data) - 40


def test_identity():
    mp3 = MP3(_file_with_frames(1))
    assert mp3.file_type() == FileType.MP3
    assert mp3.file_format_ext() == "mp3"
    info = mp3.file_format_info()
    assert info.is_valid
    assert info.version == "3.3"
    assert info.ext == "mp3"