[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fmtprobe"
version = "0.1.0"
description = "Recognise MP3, Amiga hunk, DOS COM and LE/LX files and build their memory maps"
requires-python = ">=3.10"
dependencies = []
keywords = ["binary", "file-format", "executable", "mp3", "id3", "amiga", "hunk", "le", "lx", "com", "memory-map"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: File Formats",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fmtprobe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
