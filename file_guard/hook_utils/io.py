"""
JSON I/O utilities.

Includes:
- Fast JSON decoding via msgspec (fast_json_loads, decode_json_as)
- Safe file reads that treat a missing file as "no content"
"""
from pathlib import Path
from typing import Any

import msgspec

PathLike = str | Path

_decoder = msgspec.json.Decoder()


def fast_json_loads(data: bytes | str) -> Any:
    """Decode JSON into plain Python objects using msgspec."""
    return _decoder.decode(data)


def decode_json_as(data: bytes | str, type_: type) -> Any:
    """Decode and validate JSON against a msgspec type.

    Raises:
        msgspec.DecodeError: Invalid JSON, or JSON that doesn't match type_
            (msgspec.ValidationError is a subclass).
    """
    return msgspec.json.decode(data, type=type_)


def read_bytes_if_exists(path: PathLike) -> bytes | None:
    """Read a file's bytes, returning None if it doesn't exist.

    Other I/O errors (permission denied, path is a directory) propagate:
    the file exists but can't be used, which callers must not confuse
    with absence.
    """
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return None
