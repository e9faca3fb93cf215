"""Recognise MP3, Amiga hunk, DOS COM and LE/LX files and build their memory maps."""

__version__ = "0.1.0"

__all__ = ["binary", "mp3", "amigahunk", "com", "le_defs", "le_header", "le"]