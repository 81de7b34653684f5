"""
Bounds-Checked Binary Reader
=============================

Every byte the PE parsers look at goes through :class:`BinaryReader`.  It
wraps the whole file held in memory and exposes typed little-endian
accessors that refuse to read outside the buffer, so offset arithmetic in
the higher layers never has to re-check bounds ad hoc.
"""

from __future__ import annotations

import struct
from pathlib import Path

from graft.parsers.exceptions import ImageReadError, OutOfRangeError

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class BinaryReader:
    """Random-access, bounds-checked view over an in-memory image.

    Usage::

        reader = BinaryReader.from_file("kernel32.dll")
        magic = reader.read_u16(0)
        name = reader.read_cstring(0x1234)
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data: bytes = bytes(data)

    @classmethod
    def from_file(cls, path: str | Path, max_size: int | None = None) -> BinaryReader:
        """Read *path* wholesale into memory.

        Args:
            path: Image file to load.
            max_size: Refuse files larger than this many bytes.

        Raises:
            ImageReadError: The file is missing, unreadable or too large.
        """
        file_path = Path(path)
        try:
            size = file_path.stat().st_size
            if max_size is not None and size > max_size:
                raise ImageReadError(
                    f"{file_path}: file too large: {size:,} bytes "
                    f"(max: {max_size:,} bytes)"
                )
            return cls(file_path.read_bytes())
        except ImageReadError:
            raise
        except OSError as exc:
            raise ImageReadError(f"{file_path}: {exc.strerror or exc}") from exc

    # ------------------------------------------------------------------ #
    #  Properties
    # ------------------------------------------------------------------ #

    @property
    def data(self) -> bytes:
        """The underlying buffer (read-only)."""
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    # ------------------------------------------------------------------ #
    #  Accessors
    # ------------------------------------------------------------------ #

    def require(self, offset: int, length: int, what: str = "read") -> None:
        """Raise :class:`OutOfRangeError` unless ``[offset, offset+length)`` fits."""
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise OutOfRangeError(offset, length, len(self._data), what)

    def read_bytes(self, offset: int, length: int) -> bytes:
        self.require(offset, length)
        return self._data[offset:offset + length]

    def read_u16(self, offset: int) -> int:
        self.require(offset, 2)
        return _U16.unpack_from(self._data, offset)[0]

    def read_u32(self, offset: int) -> int:
        self.require(offset, 4)
        return _U32.unpack_from(self._data, offset)[0]

    def read_u64(self, offset: int) -> int:
        self.require(offset, 8)
        return _U64.unpack_from(self._data, offset)[0]

    def read_cstring(self, offset: int) -> str:
        """Read a NUL-terminated byte string starting at *offset*.

        Bytes are decoded as Latin-1 so every byte survives as exactly one
        character.  Running into the end of the buffer before a NUL is an
        error: the string is truncated and cannot be trusted.

        Raises:
            OutOfRangeError: *offset* is outside the buffer or the string
                is unterminated.
        """
        size = len(self._data)
        if offset < 0 or offset >= size:
            raise OutOfRangeError(offset, 1, size, "string read")
        end = self._data.find(b"\x00", offset)
        if end == -1:
            raise OutOfRangeError(offset, size - offset + 1, size, "unterminated string")
        return self._data[offset:end].decode("latin-1")
