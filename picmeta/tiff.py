"""TIFF/EXIF directory engine.

Every container format hands its EXIF payload to this module.  A raw TIFF
file can be read directly as well.

References
----------
.. [TIFF6] Adobe Developers Association.  TIFF Revision 6.0, 1992.

.. [BIGTIFF] The BigTIFF File Format.
   https://www.awaresystems.be/imaging/tiff/bigtiff.html
"""
# Standard library imports
from collections import namedtuple
import enum
import logging
import struct

# 3rd party library imports
import numpy as np

# Local imports
from .core import (
    _dispatch_integrity, StructuralError, BIG_ENDIAN, LITTLE_ENDIAN, TIFF
)
from .cursor import ByteCursor
from .metadata import Metadata
from .options import _resolve
from . import tags

logger = logging.getLogger(__name__)

# Mnemonics for the two TIFF format version numbers.
CLASSIC_TIFF = 42
BIGTIFF = 43


class FieldType(enum.IntEnum):
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13
    LONG8 = 16
    SLONG8 = 17
    IFD8 = 18


# maps the TIFF enumerated datatype to the corresponding structs datatype code,
# the data width, and the corresponding numpy datatype
DATATYPE2FMT = {
    1: {"format": "B", "nbytes": 1, "nptype": np.ubyte},
    2: {"format": "B", "nbytes": 1, "nptype": str},
    3: {"format": "H", "nbytes": 2, "nptype": np.uint16},
    4: {"format": "I", "nbytes": 4, "nptype": np.uint32},
    5: {"format": "II", "nbytes": 8, "nptype": np.double},
    6: {"format": "b", "nbytes": 1, "nptype": np.int8},
    7: {"format": "B", "nbytes": 1, "nptype": np.uint8},
    8: {"format": "h", "nbytes": 2, "nptype": np.int16},
    9: {"format": "i", "nbytes": 4, "nptype": np.int32},
    10: {"format": "ii", "nbytes": 8, "nptype": np.double},
    11: {"format": "f", "nbytes": 4, "nptype": np.double},
    12: {"format": "d", "nbytes": 8, "nptype": np.double},
    13: {"format": "I", "nbytes": 4, "nptype": np.uint32},
    16: {"format": "Q", "nbytes": 8, "nptype": np.uint64},
    17: {"format": "q", "nbytes": 8, "nptype": np.int64},
    18: {"format": "Q", "nbytes": 8, "nptype": np.uint64},
}

_CLASSIC_FIELD_TYPES = frozenset(range(1, 14))
_BIGTIFF_FIELD_TYPES = _CLASSIC_FIELD_TYPES | {16, 17, 18}

# Field types that may legitimately carry a directory offset.
_OFFSET_FIELD_TYPES = frozenset((3, 4, 13, 16, 18))

# Display at most this many values of a numeric entry.
_DISPLAY_LIMIT = 16

_MAX_CHAIN = 10


class DirectoryType(enum.Enum):
    """Identifies a directory by its place in the TIFF stream."""
    IFD0 = 'IFD0'
    IFD1 = 'IFD1'
    IFD2 = 'IFD2'
    IFD3 = 'IFD3'
    IFD4 = 'IFD4'
    IFD5 = 'IFD5'
    IFD6 = 'IFD6'
    IFD7 = 'IFD7'
    IFD8 = 'IFD8'
    IFD9 = 'IFD9'
    SUBIFD0 = 'SUBIFD0'
    SUBIFD1 = 'SUBIFD1'
    SUBIFD2 = 'SUBIFD2'
    SUBIFD3 = 'SUBIFD3'
    SUBIFD4 = 'SUBIFD4'
    SUBIFD5 = 'SUBIFD5'
    SUBIFD6 = 'SUBIFD6'
    SUBIFD7 = 'SUBIFD7'
    SUBIFD8 = 'SUBIFD8'
    SUBIFD9 = 'SUBIFD9'
    EXIF = 'EXIF'
    GPS = 'GPS'
    INTEROP = 'INTEROP'

    @classmethod
    def ifd(cls, n):
        """Return IFDn, or None past the end of the supported chain."""
        return cls.__members__.get(f'IFD{n}') if n < _MAX_CHAIN else None

    @classmethod
    def subifd(cls, n):
        return cls.__members__.get(f'SUBIFD{n}') if n < _MAX_CHAIN else None

    @property
    def is_ifd(self):
        return self.name.startswith('IFD')

    @property
    def is_subifd(self):
        return self.name.startswith('SUBIFD')

    def next_in_chain(self):
        """The identifier given to the directory linked by the next pointer.

        IFD0 links to IFD1 and so on.  SubIFD chains are numbered in the
        order the directories are reached, so there is no fixed successor,
        and EXIF, GPS, and INTEROP directories have no successor at all.
        """
        if self.is_ifd:
            return DirectoryType.ifd(int(self.name[3:]) + 1)
        return None

    @property
    def tag_table(self):
        """Maps tag number to tag name for this directory family."""
        if self is DirectoryType.EXIF:
            return tags.EXIF_TAGNUM2NAME
        elif self is DirectoryType.GPS:
            return tags.GPS_TAGNUM2NAME
        elif self is DirectoryType.INTEROP:
            return tags.INTEROP_TAGNUM2NAME
        else:
            return tags.TIFF_TAGNUM2NAME


_POINTER_TAGS = {
    tags.EXIF_IFD: DirectoryType.EXIF,
    tags.GPS_IFD: DirectoryType.GPS,
    tags.INTEROP_IFD: DirectoryType.INTEROP,
    tags.SUBIFDS: None,
}


TiffHeader = namedtuple(
    'TiffHeader', ['endian', 'version', 'bigtiff', 'base', 'first_offset']
)

TiffStream = namedtuple('TiffStream', ['header', 'directories'])


def decode_value(field_type, count, raw, endian):
    """Interpret the value bytes of an entry.

    ASCII entries become str, UNDEFINED entries stay bytes.  A single
    numeric value is returned as a scalar, several as a numpy array.
    Rationals are returned as floating point, NaN for a zero denominator.
    """
    if field_type == FieldType.ASCII:
        return bytes(raw).decode('utf-8', errors='replace').rstrip('\x00')

    if field_type == FieldType.UNDEFINED:
        return bytes(raw)

    fmt = DATATYPE2FMT[field_type]["format"] * count
    payload = struct.unpack(endian + fmt, raw)
    if field_type in (FieldType.RATIONAL, FieldType.SRATIONAL):
        # Rational or Signed Rational.  Construct the list of values.
        rational_payload = []
        for j in range(count):
            try:
                value = float(payload[j * 2]) / float(payload[j * 2 + 1])
            except ZeroDivisionError:
                value = np.nan
            rational_payload.append(value)
        payload = np.array(rational_payload)

    if count == 1:
        # If just a single value, then return a scalar instead of a tuple.
        return payload[0]
    return np.array(payload, dtype=DATATYPE2FMT[field_type]["nptype"])


def format_value(field_type, count, raw, endian):
    """Render the value bytes of an entry as a diagnostic string.

    This is a pure function of its arguments.
    """
    raw = bytes(raw)
    if field_type == FieldType.ASCII:
        return raw.decode('utf-8', errors='replace').rstrip('\x00')

    if field_type == FieldType.UNDEFINED:
        text = raw.rstrip(b'\x00')
        if len(text) > 0 and all(0x20 <= b < 0x7f for b in text):
            return text.decode('ascii')
        if len(raw) > _DISPLAY_LIMIT:
            return f'{raw[:_DISPLAY_LIMIT].hex(" ")} ... ({len(raw)} bytes)'
        return raw.hex(' ')

    fmt = DATATYPE2FMT[field_type]["format"] * count
    payload = struct.unpack(endian + fmt, raw)
    if field_type in (FieldType.RATIONAL, FieldType.SRATIONAL):
        items = [
            f'{payload[j * 2]}/{payload[j * 2 + 1]}' for j in range(count)
        ]
    elif field_type in (FieldType.FLOAT, FieldType.DOUBLE):
        items = [f'{x:g}' for x in payload]
    else:
        items = [str(x) for x in payload]

    if len(items) > _DISPLAY_LIMIT:
        shown = ' '.join(items[:_DISPLAY_LIMIT])
        return f'{shown} ... ({len(items)} values)'
    return ' '.join(items)


class TiffEntry(object):
    """One tagged entry of a TIFF directory.

    Attributes
    ----------
    tag : int
        Tag number.
    name : str
        Tag name.
    field_type : FieldType
        TIFF datatype of the value.
    count : int
        Number of values.
    raw : bytes
        The value bytes, taken from the entry itself or from the location
        its offset field points to.
    offset : int
        Absolute position of the value bytes in the parsed buffer.
    endian : str
        Either '<' for little-endian, or '>' for big-endian.
    """

    def __init__(self, tag, name, field_type, count, raw, offset, endian):
        self.tag = tag
        self.name = name
        self.field_type = FieldType(field_type)
        self.count = count
        self.raw = raw
        self.offset = offset
        self.endian = endian

    def __repr__(self):
        msg = (
            "picmeta.tiff.TiffEntry(tag={0}, name='{1}', field_type={2}, "
            "count={3})"
        )
        return msg.format(
            self.tag, self.name, self.field_type.name, self.count
        )

    def __str__(self):
        return f'{self.name} ({self.tag}): {self.display_value()}'

    @property
    def value(self):
        return decode_value(self.field_type, self.count, self.raw, self.endian)

    def display_value(self):
        return format_value(
            self.field_type, self.count, self.raw, self.endian
        )


class TiffDirectory(object):
    """An image file directory.

    Attributes
    ----------
    identifier : DirectoryType
        Where the directory sits in the TIFF stream.
    offset : int
        Absolute position of the directory in the parsed buffer.
    endian : str
        Byte order inherited from the TIFF header.
    entries : list
        TiffEntry objects in file order.
    index : int
        Position of the directory in the order the stream was read.
    parent : int or None
        Index of the directory holding the pointer to this one, None for the
        IFD0 chain.
    depth : int
        Number of pointers followed to reach this directory.
    """

    def __init__(
        self, identifier, offset, endian, index=0, parent=None, depth=0
    ):
        self.identifier = identifier
        self.offset = offset
        self.endian = endian
        self.index = index
        self.parent = parent
        self.depth = depth
        self.entries = []

    def __repr__(self):
        msg = (
            "picmeta.tiff.TiffDirectory(identifier={0}, offset={1}, "
            "entries={2})"
        )
        return msg.format(self.identifier.name, self.offset, len(self.entries))

    def __str__(self):
        msg = f'{self.identifier.name} directory @ {self.offset}'
        for entry in self.entries:
            msg += f'\n    {entry}'
        return msg

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def __contains__(self, key):
        return self.get(key) is not None

    def __getitem__(self, key):
        entry = self.get(key)
        if entry is None:
            raise KeyError(key)
        return entry

    def get(self, key, default=None):
        """Return the first entry with the given tag number or name."""
        for entry in self.entries:
            if entry.tag == key or entry.name == key:
                return entry
        return default


class TiffReader(object):
    """Walk every directory reachable from the header of a TIFF stream.

    Directories are collected into a flat list and refer to each other by
    index.  Pointers are followed with an explicit work stack so that no
    amount of nesting in the file grows the Python call stack; a set of
    visited offsets and a depth limit stop cyclic or absurdly deep chains.

    The order of the resulting list is: a directory, then the directories
    its pointer entries lead to (in entry order, each with its own
    descendants), then the directory linked by its next pointer.

    Parameters
    ----------
    buffer : bytes-like
        Buffer holding the TIFF stream.
    base : int, optional
        Position of the TIFF header in the buffer.  All offsets in the stream
        are relative to it.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
    max_depth : int, optional
        Deepest directory that will be followed.
    """

    def __init__(self, buffer, base=0, strict=False, max_depth=32):
        self.cursor = ByteCursor(buffer)
        self.base = base
        self.strict = strict
        self.max_depth = max_depth
        self.header = None
        self.directories = []

    def read(self):
        """Read the header and then the directories.

        Returns
        -------
        TiffStream
        """
        self.header = self._read_header()
        self.directories = []

        count_size = 8 if self.header.bigtiff else 2
        first = self.base + self.header.first_offset
        if (
            self.header.first_offset == 0
            or first + count_size > len(self.cursor)
        ):
            msg = (
                f'The offset to the first directory ({self.header.first_offset}) '
                f'lies outside of the {len(self.cursor) - self.base} byte TIFF '
                f'stream.'
            )
            raise StructuralError(msg)

        visited = set()
        subifd_count = 0

        # work items are (identifier, offset, parent index, depth); an
        # identifier of None means "the next free SubIFD identifier"
        stack = [(DirectoryType.IFD0, self.header.first_offset, None, 0)]

        while stack:

            identifier, offset, parent, depth = stack.pop()
            position = self.base + offset

            if position in visited:
                msg = (
                    f'A directory pointer refers back to offset {offset}, '
                    f'which has already been read.  It will not be followed.'
                )
                _dispatch_integrity(msg, self.strict)
                continue

            if depth > self.max_depth:
                msg = (
                    f'The directory at offset {offset} is nested more than '
                    f'{self.max_depth} levels deep and will not be read.'
                )
                _dispatch_integrity(msg, self.strict)
                continue

            if identifier is None:
                identifier = DirectoryType.subifd(subifd_count)
                subifd_count += 1

            if identifier is None:
                msg = (
                    f'Too many SubIFDs, the directory at offset {offset} will '
                    f'not be read.'
                )
                _dispatch_integrity(msg, self.strict)
                continue

            if any(d.identifier is identifier for d in self.directories):
                msg = (
                    f'A second {identifier.name} directory was found at '
                    f'offset {offset}.  It will not be read.'
                )
                _dispatch_integrity(msg, self.strict)
                continue

            visited.add(position)

            directory = TiffDirectory(
                identifier, position, self.cursor.endian,
                index=len(self.directories), parent=parent, depth=depth
            )
            try:
                children, next_offset = self._read_directory(directory)
            except StructuralError as e:
                if len(self.directories) == 0:
                    # IFD0 is mandatory.
                    raise
                msg = (
                    f'Unable to read the {identifier.name} directory at '
                    f'offset {offset}:  {e}'
                )
                _dispatch_integrity(msg, self.strict)
                continue

            self.directories.append(directory)
            logger.debug(
                f'{identifier.name} directory @ {position}:  '
                f'{len(directory.entries)} entries'
            )

            # Push in reverse so that the children are popped in entry order
            # and the next directory in the chain after all of them.
            if next_offset != 0:
                if identifier.is_ifd:
                    successor = identifier.next_in_chain()
                    if successor is None:
                        msg = (
                            f'Too many directories in the IFD chain, the '
                            f'directory at offset {next_offset} will not be '
                            f'read.'
                        )
                        _dispatch_integrity(msg, self.strict)
                    else:
                        stack.append(
                            (successor, next_offset, parent, depth + 1)
                        )
                elif identifier.is_subifd:
                    stack.append((None, next_offset, parent, depth + 1))
                else:
                    logger.debug(
                        f'Ignoring the next pointer of the {identifier.name} '
                        f'directory.'
                    )

            for child_identifier, child_offset in reversed(children):
                stack.append(
                    (child_identifier, child_offset, directory.index, depth + 1)
                )

        return TiffStream(self.header, list(self.directories))

    def _read_header(self):
        """Get the endian-ness of the TIFF and the offset to the first IFD"""
        cursor = self.cursor
        try:
            cursor.seek(self.base)
            order = cursor.read_bytes(2)
        except StructuralError:
            msg = f'No room for a TIFF header at offset {self.base}.'
            raise StructuralError(msg) from None

        # big endian or little endian?
        if order == b'II':
            cursor.set_endian(LITTLE_ENDIAN)
        elif order == b'MM':
            cursor.set_endian(BIG_ENDIAN)
        else:
            msg = (
                f"The byte order indication in the TIFF header "
                f"({order}) is invalid.  It should be either "
                f"{bytes([73, 73])} or {bytes([77, 77])}."
            )
            raise StructuralError(msg)

        version = cursor.read_u16()
        if version == BIGTIFF:
            bytesize = cursor.read_u16()
            reserved = cursor.read_u16()
            if bytesize != 8 or reserved != 0:
                msg = (
                    f'Invalid BigTIFF header:  the offset byte size is '
                    f'{bytesize} and the reserved field is {reserved}.'
                )
                raise StructuralError(msg)
            first_offset = cursor.read_u64()
            return TiffHeader(cursor.endian, version, True, self.base,
                              first_offset)

        if version != CLASSIC_TIFF:
            msg = (
                f'Unrecognized TIFF version {version}, treating the stream as '
                f'classic TIFF.'
            )
            _dispatch_integrity(msg, self.strict)
            version = CLASSIC_TIFF

        first_offset = cursor.read_u32()
        return TiffHeader(cursor.endian, version, False, self.base,
                          first_offset)

    def _read_directory(self, directory):
        """Read the entries of one directory.

        Returns
        -------
        children : list
            (identifier, offset) of each directory pointed to by an entry.
        next_offset : int
            The next directory pointer, 0 if there is none.
        """
        cursor = self.cursor
        bigtiff = self.header.bigtiff

        if bigtiff:
            entry_format = cursor.endian + 'HHQ'
            entry_size = 20
            payload_offset = 12
            max_payload_length = 8
            accepted_types = _BIGTIFF_FIELD_TYPES
        else:
            entry_format = cursor.endian + 'HHI'
            entry_size = 12
            payload_offset = 8
            max_payload_length = 4
            accepted_types = _CLASSIC_FIELD_TYPES

        cursor.seek(directory.offset)
        num_tags = cursor.read_u64() if bigtiff else cursor.read_u16()
        start = cursor.tell()

        # The whole directory body must be present, otherwise this is not a
        # directory at all.
        body = cursor.peek(start, num_tags * entry_size)

        tag_table = directory.identifier.tag_table
        children = []

        for idx in range(num_tags):

            entry_position = start + idx * entry_size
            entry_data = body[idx * entry_size:(idx + 1) * entry_size]
            tag, dtype, nvalues = struct.unpack_from(entry_format, entry_data)
            field = entry_data[payload_offset:]

            try:
                name = tag_table[tag]
            except KeyError:
                msg = (
                    f'Unrecognized tag {tag} in the '
                    f'{directory.identifier.name} directory, skipping it.'
                )
                _dispatch_integrity(msg, self.strict)
                continue

            if dtype not in accepted_types:
                msg = (
                    f'Invalid TIFF field type {dtype} for tag {name} ({tag}), '
                    f'skipping it.'
                )
                _dispatch_integrity(msg, self.strict)
                continue

            payload_length = DATATYPE2FMT[dtype]["nbytes"] * nvalues

            if payload_length <= max_payload_length:
                # the payload DOES fit into the TIFF tag entry
                raw = field[:payload_length]
                value_position = entry_position + payload_offset
            else:
                # the payload does not fit into the tag entry, so use the
                # offset to find it
                fmt = cursor.endian + ('Q' if bigtiff else 'I')
                offset, = struct.unpack(fmt, field)
                value_position = self.base + offset
                if value_position + payload_length > len(cursor):
                    msg = (
                        f'The {payload_length} byte value of tag {name} '
                        f'({tag}) at offset {offset} lies outside of the '
                        f'buffer, skipping it.'
                    )
                    _dispatch_integrity(msg, self.strict)
                    continue
                raw = cursor.peek(value_position, payload_length)

            entry = TiffEntry(
                tag, name, dtype, nvalues, raw, value_position, cursor.endian
            )
            directory.entries.append(entry)

            if tag in _POINTER_TAGS:
                children.extend(self._pointer_targets(entry))

        next_size = 8 if bigtiff else 4
        next_position = start + num_tags * entry_size
        if next_position + next_size > len(cursor):
            logger.debug(
                f'No next pointer after the {directory.identifier.name} '
                f'directory, the buffer ends first.'
            )
            next_offset = 0
        else:
            cursor.seek(next_position)
            next_offset = cursor.read_u64() if bigtiff else cursor.read_u32()

        return children, next_offset

    def _pointer_targets(self, entry):
        """Directories referred to by a pointer entry."""
        if entry.field_type not in _OFFSET_FIELD_TYPES:
            msg = (
                f'The {entry.name} pointer has field type '
                f'{entry.field_type.name}, which cannot hold an offset.  It '
                f'will not be followed.'
            )
            _dispatch_integrity(msg, self.strict)
            return []

        offsets = np.atleast_1d(entry.value)
        identifier = _POINTER_TAGS[entry.tag]
        if identifier is None:
            # SubIFDs
            return [(None, int(offset)) for offset in offsets]
        return [(identifier, int(offsets[0]))] if len(offsets) > 0 else []


def read_tiff(buffer, base=0, strict=False, max_depth=32):
    """Read the directories of a TIFF stream.

    Parameters
    ----------
    buffer : bytes-like
        Buffer holding the TIFF stream.
    base : int, optional
        Position of the TIFF header in the buffer.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
    max_depth : int, optional
        Deepest directory that will be followed.

    Returns
    -------
    TiffStream
    """
    return TiffReader(buffer, base, strict=strict, max_depth=max_depth).read()


def parse(buffer, strict=None, max_depth=None):
    """Read the metadata of a TIFF file.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
        Defaults to the 'parse.strict' option.
    max_depth : int, optional
        Deepest directory that will be followed.  Defaults to the
        'parse.max_depth' option.

    Returns
    -------
    Metadata
    """
    strict, max_depth = _resolve(strict, max_depth)
    metadata = Metadata(TIFF)
    stream = read_tiff(buffer, strict=strict, max_depth=max_depth)
    metadata._add_tiff(stream, strict=strict)
    return metadata._freeze()
