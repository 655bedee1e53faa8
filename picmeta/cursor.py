"""Sequential, byte-order aware reader over an in-memory buffer.
"""
# Standard library imports
import struct

# Local imports
from .core import TruncatedDataError, BIG_ENDIAN, LITTLE_ENDIAN


_UINT_FORMAT = {1: 'B', 2: 'H', 4: 'I', 8: 'Q'}


class ByteCursor(object):
    """Bounds-checked reader over a borrowed byte buffer.

    The buffer is wrapped in a memoryview, never copied.  Every read is
    checked against the buffer length before anything is consumed, so a
    failed read leaves the position untouched.

    Attributes
    ----------
    position : int
        Current offset into the buffer.
    endian : str
        Either '<' for little-endian, or '>' for big-endian.
    """

    def __init__(self, buffer, endian=BIG_ENDIAN, position=0):
        self._view = memoryview(buffer).cast('B')
        self.endian = endian
        self.position = 0
        self._mark = None
        self.seek(position)

    def __len__(self):
        return len(self._view)

    def __repr__(self):
        msg = "picmeta.cursor.ByteCursor(length={0}, position={1}, endian='{2}')"
        return msg.format(len(self), self.position, self.endian)

    def set_endian(self, endian):
        if endian not in (BIG_ENDIAN, LITTLE_ENDIAN):
            msg = f"Byte order must be '<' or '>', not {endian!r}."
            raise ValueError(msg)
        self.endian = endian

    def tell(self):
        return self.position

    def remaining(self):
        """Number of bytes between the current position and the end."""
        return len(self._view) - self.position

    def at_end(self):
        return self.position >= len(self._view)

    def seek(self, position):
        """Move to an absolute position in [0, len(buffer)]."""
        if position < 0 or position > len(self._view):
            msg = (
                f"Cannot seek to offset {position}, the buffer is only "
                f"{len(self._view)} bytes long."
            )
            raise TruncatedDataError(msg)
        self.position = position

    def skip(self, nbytes):
        """Advance the position by a non-negative number of bytes."""
        if nbytes < 0:
            raise ValueError(f"Cannot skip a negative number of bytes ({nbytes}).")
        self._check(nbytes)
        self.position += nbytes

    def _check(self, nbytes, position=None):
        if position is None:
            position = self.position
        if position < 0 or nbytes < 0 or position + nbytes > len(self._view):
            msg = (
                f"Attempted to read {nbytes} bytes at offset {position}, but "
                f"the buffer is only {len(self._view)} bytes long."
            )
            raise TruncatedDataError(msg)

    def read_bytes(self, nbytes):
        """Read the next nbytes as an immutable bytes object."""
        self._check(nbytes)
        data = self._view[self.position:self.position + nbytes].tobytes()
        self.position += nbytes
        return data

    def peek(self, offset, nbytes):
        """Return nbytes at an absolute offset without moving."""
        self._check(nbytes, position=offset)
        return self._view[offset:offset + nbytes].tobytes()

    def _unpack(self, fmt, nbytes):
        self._check(nbytes)
        value, = struct.unpack_from(self.endian + fmt, self._view, self.position)
        self.position += nbytes
        return value

    def read_u8(self):
        return self._unpack('B', 1)

    def read_u16(self):
        return self._unpack('H', 2)

    def read_u32(self):
        return self._unpack('I', 4)

    def read_u64(self):
        return self._unpack('Q', 8)

    def read_s8(self):
        return self._unpack('b', 1)

    def read_s16(self):
        return self._unpack('h', 2)

    def read_s32(self):
        return self._unpack('i', 4)

    def read_s64(self):
        return self._unpack('q', 8)

    def read_uint(self, nbytes):
        """Read an unsigned integer stored in 0, 1, 2, 4, or 8 bytes.

        A zero-sized field is present in ISOBMFF structures and reads as 0.
        """
        if nbytes == 0:
            return 0
        try:
            fmt = _UINT_FORMAT[nbytes]
        except KeyError:
            msg = f"Unsupported integer field size ({nbytes} bytes)."
            raise ValueError(msg) from None
        return self._unpack(fmt, nbytes)

    def read_fourcc(self):
        """Read a 4-byte type code."""
        return self.read_bytes(4)

    def mark(self):
        """Save the current position in the single save slot.

        Raises
        ------
        RuntimeError
            If a position is already saved and has not been reset.
        """
        if self._mark is not None:
            msg = (
                f"The cursor is already marked at offset {self._mark}; only "
                f"one outstanding mark is allowed."
            )
            raise RuntimeError(msg)
        self._mark = self.position

    def reset(self):
        """Return to the marked position and clear the save slot."""
        if self._mark is None:
            raise RuntimeError("The cursor has not been marked.")
        self.position = self._mark
        self._mark = None

    @property
    def marked(self):
        return self._mark is not None
