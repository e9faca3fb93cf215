"""MPEG audio files with an ID3v2 tag."""

from __future__ import annotations

import math

from .binary import Binary, FileType, MapMode, MemoryMap, MemoryRecord, MemoryType

_LOW_RATE_II_III = (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160)
_LOW_RATE_I = (0, 32, 48, 56, 64, 80, 96, 112, 128, 144, 160, 176, 192, 224, 256)

# Keyed by (version bits, layer bits); layer bits 1, 2, 3 mean layers III, II, I.
_BITRATES = {
    (1, 1): _LOW_RATE_II_III,
    (1, 2): _LOW_RATE_II_III,
    (2, 1): _LOW_RATE_II_III,
    (2, 2): _LOW_RATE_II_III,
    (1, 3): _LOW_RATE_I,
    (2, 3): _LOW_RATE_I,
    (3, 1): (0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320),
    (3, 2): (0, 32, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320, 384),
    (3, 3): (0, 32, 64, 96, 128, 160, 192, 224, 256, 288, 320, 352, 384, 416, 448),
}

# Version bits 1, 2, 3 mean MPEG 2.5, 2 and 1.
_FREQUENCIES = {
    1: (11025, 12000, 8000),
    2: (22050, 24000, 16000),
    3: (44100, 48000, 32000),
}

_ID3_VERSIONS = (("'ID3'0200", "3.2"), ("'ID3'0300", "3.3"), ("'ID3'0400", "3.4"))


class MP3(Binary):
    """An MP3 file starting with an ID3v2 tag."""

    def is_valid(self):
        if self.size() <= 0x20:
            return False
        return any(self.compare_signature(signature, 0) for signature, _ in _ID3_VERSIONS)

    def file_format_ext(self):
        return "mp3"

    def file_format_size(self):
        return self.raw_size()

    def memory_map(self, map_mode=MapMode.UNKNOWN):
        """Map the ID3 tag as a header followed by consecutive frames."""
        result = MemoryMap(binary_size=self.size())

        if not self.compare_signature("'ID3'..00", 0):
            return result

        tag_size = (
            (self.read_uint8(6) << 21)
            | (self.read_uint8(7) << 14)
            | (self.read_uint8(8) << 7)
            | self.read_uint8(9)
        )
        offset = 10 + tag_size
        result.records.append(
            MemoryRecord(index=0, type=MemoryType.HEADER, offset=0, size=offset, address=-1, name="Header")
        )

        index = 1
        while frame_size := self.decode_frame(offset):
            result.records.append(
                MemoryRecord(
                    index=index,
                    type=MemoryType.FILESEGMENT,
                    offset=offset,
                    size=frame_size,
                    address=-1,
                    name="Frame",
                )
            )
            index += 1
            offset += frame_size

        return result

    def file_type(self):
        return FileType.MP3

    def version(self):
        if self.size() <= 0x20:
            return ""
        return next(
            (name for signature, name in _ID3_VERSIONS if self.compare_signature(signature, 0)),
            "",
        )

    def decode_frame(self, offset):
        """Length in bytes of the frame whose header is at offset, or 0."""
        header = self.read_uint32(offset, True)
        if not header & 0xFFE00000:
            return 0

        version = (header >> 19) & 0x3
        layer = (header >> 17) & 0x3
        bitrate_index = (header >> 12) & 0xF
        frequency_index = (header >> 10) & 0x3
        padding = (header >> 9) & 0x1

        rates = _BITRATES.get((version, layer), ())
        bitrate = rates[bitrate_index] if bitrate_index < len(rates) else 0

        frequencies = _FREQUENCIES.get(version, ())
        frequency = frequencies[frequency_index] if frequency_index < len(frequencies) else 0

        if not frequency:
            return 0

        if layer == 3:
            return math.floor(12000 * bitrate / frequency + padding) * 4

        samples = 1152 if (layer == 2 or version == 3) else 576
        duration = samples / frequency
        # 125 turns kilobits per second into bytes per second.
        return math.floor(125 * bitrate * duration + padding)