# fmtprobe

Recognise a handful of binary file formats and describe how they lay out
in memory. Each format class takes the file contents (`bytes`, a
`bytearray`, or any object with a `read()` method) and keeps its own copy.

Supported formats:

- **MP3** with an ID3v2 tag (`fmtprobe.mp3.MP3`): validity, ID3 version,
  frame walking.
- **Amiga hunk** executables and objects (`fmtprobe.amigahunk.AmigaHunk`):
  hunk listing, memory maps by segments or by regions.
- **DOS COM** programs (`fmtprobe.com.COM`).
- **LE / LX** linear executables (`fmtprobe.le.LE`), with read and write
  access to the header fields, the object table and the page maps.

All of them derive from `fmtprobe.binary.Binary`, which provides
`read_uint8/16/32`, `write_uint8/16/32`, `compare_signature`, `memory_map`
and `file_format_info`. Reads past the end of the data give zeros; writes
outside the data raise `IndexError`. Memory maps are `MemoryMap` objects
holding a list of `MemoryRecord` entries.

## Installation

```
pip install .
```

## Usage

```python
from fmtprobe.mp3 import MP3

with open("song.mp3", "rb") as fh:
    mp3 = MP3(fh)

if mp3.is_valid():
    print(mp3.version())                  # "3.2", "3.3" or "3.4"
    for record in mp3.memory_map().records:
        print(record.name, record.offset, record.size)
```

Amiga hunk files:

```python
from fmtprobe.amigahunk import AmigaHunk, hunk_type_to_string
from fmtprobe.binary import MapMode

hunk = AmigaHunk(data)
if hunk.is_valid():
    for h in hunk.hunks():
        print(hunk_type_to_string(h.id), h.offset, h.size)
    segments = hunk.memory_map(MapMode.SEGMENTS)
    info = hunk.file_format_info()
```

LE/LX executables, including header edits. Field names may be given with
or without the `e32_` prefix; an unknown name raises `KeyError`. Edits
change the object's own copy of the data, available as `le.data`:

```python
from fmtprobe.le import LE

le = LE(data)
if le.is_valid():
    print(le.file_type(), le.arch(), le.os_name())
    print(le.header_field("eip"))
    le.set_header_field("eip", 0x1000)
    patched = le.data
    for obj in le.objects():
        print(hex(obj.base), obj.size)
```

COM programs are loaded at address `0x100` in a 64 KiB image:

```python
from fmtprobe.com import COM

com = COM(data)
print(com.is_valid(), com.image_size())
```

## What it does not do

- There is no command-line tool; the package is a library only.
- There is no automatic detection: you pick the class for the format you
  want to check and call its `is_valid()`.
- MP3 support walks the ID3v2 tag and the audio frames after it; it does
  not read tag contents or a trailing ID3v1 tag, and does not decode audio.

## Running the tests

```
pip install .[test]
pytest
```