"""PNG chunk reader.

References
----------
.. [PNG3] W3C.  Portable Network Graphics (PNG) Specification (Third
   Edition), 2025.
"""
# Standard library imports
from collections import namedtuple
import logging
import warnings
import zlib

# Local imports
from .core import (
    _dispatch_integrity, NotThisFormatError, StructuralError,
    TruncatedDataError, TextDecodeWarning, BIG_ENDIAN, PNG
)
from .cursor import ByteCursor
from .metadata import Metadata, TextualRecord
from .options import _resolve
from .tiff import read_tiff
from .xmp import parse_xmp

logger = logging.getLogger(__name__)

SIGNATURE = b'\x89PNG\r\n\x1a\n'

ChunkInfo = namedtuple('ChunkInfo', ['description', 'multiple_allowed'])

# Chunk types we know about.  Anything else is skipped.
CHUNK_TYPES = {
    b'IHDR': ChunkInfo('Image header', False),
    b'PLTE': ChunkInfo('Palette', False),
    b'IDAT': ChunkInfo('Image data', True),
    b'IEND': ChunkInfo('Image trailer', False),
    b'acTL': ChunkInfo('Animation control', False),
    b'cHRM': ChunkInfo('Primary chromaticities and white point', False),
    b'cICP': ChunkInfo('Coding-independent code points', False),
    b'gAMA': ChunkInfo('Image gamma', False),
    b'iCCP': ChunkInfo('Embedded ICC profile', False),
    b'mDCV': ChunkInfo('Mastering display color volume', False),
    b'cLLI': ChunkInfo('Content light level information', False),
    b'sBIT': ChunkInfo('Significant bits', False),
    b'sRGB': ChunkInfo('Standard RGB color space', False),
    b'bKGD': ChunkInfo('Background color', False),
    b'hIST': ChunkInfo('Image histogram', False),
    b'tRNS': ChunkInfo('Transparency', False),
    b'eXIf': ChunkInfo('Exchangeable image file profile', False),
    b'fcTL': ChunkInfo('Frame control', True),
    b'pHYs': ChunkInfo('Physical pixel dimensions', False),
    b'sPLT': ChunkInfo('Suggested palette', True),
    b'fdAT': ChunkInfo('Frame data', True),
    b'tIME': ChunkInfo('Image last-modification time', False),
    b'iTXt': ChunkInfo('International textual data', True),
    b'tEXt': ChunkInfo('Textual data', True),
    b'zTXt': ChunkInfo('Compressed textual data', True),
}

# What parse() extracts unless told otherwise.
DEFAULT_WANTED = frozenset((b'tEXt', b'zTXt', b'iTXt', b'eXIf'))

# iTXt keyword used to carry an XMP packet.
XMP_KEYWORD = 'XML:com.adobe.xmp'

_MAX_LENGTH = 2 ** 31 - 1


class PngChunk(object):
    """
    Attributes
    ----------
    chunk_type : bytes
        4-character chunk type.
    offset : int
        Offset of the chunk (its length field) from the start of the file.
    length : int
        Length of the chunk payload in bytes.
    payload : bytes or None
        The payload, None if it was not wanted.
    crc : int
        CRC-32 stored in the file.
    computed_crc : int or None
        CRC-32 of the type and payload, None if the payload was not wanted.
    """

    def __init__(self, chunk_type, offset, length, payload, crc,
                 computed_crc=None):
        self.chunk_type = chunk_type
        self.offset = offset
        self.length = length
        self.payload = payload
        self.crc = crc
        self.computed_crc = computed_crc

    def __repr__(self):
        msg = "picmeta.png.PngChunk(chunk_type={0}, offset={1}, length={2})"
        return msg.format(self.chunk_type, self.offset, self.length)

    def __str__(self):
        try:
            longname = CHUNK_TYPES[self.chunk_type].description
        except KeyError:
            longname = 'Unknown'
        name = self.chunk_type.decode('latin-1')
        return f'{longname} Chunk ({name}) @ ({self.offset}, {self.length})'

    # The property bits are bit 5 of each of the type bytes.
    @property
    def ancillary(self):
        return bool(self.chunk_type[0] & 0x20)

    @property
    def private(self):
        return bool(self.chunk_type[1] & 0x20)

    @property
    def reserved(self):
        return bool(self.chunk_type[2] & 0x20)

    @property
    def safe_to_copy(self):
        return bool(self.chunk_type[3] & 0x20)

    @property
    def crc_ok(self):
        if self.computed_crc is None:
            return None
        return self.crc == self.computed_crc


class PngChunkReader(object):
    """Walk the chunks of a PNG stream up to IEND.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    wanted : iterable, optional
        Chunk types whose payloads are retained and CRC-checked.  None means
        every chunk, an empty collection means none.
    strict : bool, optional
        Raise StructuralError on a CRC mismatch instead of warning.
    """

    def __init__(self, buffer, wanted=None, strict=False):
        self.cursor = ByteCursor(buffer, BIG_ENDIAN)
        if wanted is not None:
            wanted = frozenset(_as_chunk_type(x) for x in wanted)
        self.wanted = wanted
        self.strict = strict
        self.chunks = []

    def read(self):
        """Read every chunk.

        Returns
        -------
        list
            PngChunk objects in file order.
        """
        cursor = self.cursor
        if len(cursor) < 8 or cursor.peek(0, 8) != SIGNATURE:
            raise NotThisFormatError('The stream lacks the PNG signature.')
        cursor.seek(8)

        seen = set()
        while True:

            if cursor.remaining() < 12:
                msg = (
                    f'The PNG stream ends at offset {len(cursor)} before the '
                    f'IEND chunk.'
                )
                raise TruncatedDataError(msg)

            offset = cursor.tell()
            length = cursor.read_u32()
            chunk_type = cursor.read_fourcc()

            if not chunk_type.isalpha():
                msg = f'Invalid PNG chunk type {chunk_type} at offset {offset}.'
                raise StructuralError(msg)

            if length > _MAX_LENGTH or length + 4 > cursor.remaining():
                msg = (
                    f'The {chunk_type.decode("latin-1")} chunk at offset '
                    f'{offset} declares a length of {length} bytes, which runs '
                    f'past the end of the stream.'
                )
                raise TruncatedDataError(msg)

            if len(self.chunks) == 0 and chunk_type != b'IHDR':
                msg = (
                    f'The first chunk must be IHDR, but found '
                    f'{chunk_type.decode("latin-1")}.'
                )
                raise StructuralError(msg)

            info = CHUNK_TYPES.get(chunk_type)
            if info is None:
                logger.debug(f'Skipping unknown chunk type {chunk_type}')
            elif not info.multiple_allowed and chunk_type in seen:
                msg = (
                    f'Multiple {chunk_type.decode("latin-1")} chunks are not '
                    f'allowed, the second one is at offset {offset}.'
                )
                raise StructuralError(msg)
            seen.add(chunk_type)

            if self.wanted is None or chunk_type in self.wanted:
                payload = cursor.read_bytes(length)
                crc = cursor.read_u32()
                computed = zlib.crc32(chunk_type + payload) & 0xffffffff
                chunk = PngChunk(chunk_type, offset, length, payload, crc,
                                 computed)
                if crc != computed:
                    msg = (
                        f'CRC mismatch in the {chunk_type.decode("latin-1")} '
                        f'chunk at offset {offset}:  stored 0x{crc:08x}, '
                        f'computed 0x{computed:08x}.'
                    )
                    _dispatch_integrity(msg, self.strict)
            else:
                cursor.skip(length)
                crc = cursor.read_u32()
                chunk = PngChunk(chunk_type, offset, length, None, crc)

            self.chunks.append(chunk)

            if chunk_type == b'IEND':
                break

        if not cursor.at_end():
            msg = f'{cursor.remaining()} bytes after the IEND chunk ignored.'
            logger.debug(msg)

        return self.chunks


def _as_chunk_type(x):
    if isinstance(x, str):
        x = x.encode('latin-1')
    return bytes(x)


def _split_keyword(payload):
    """Split the Latin-1 keyword off the front of a textual chunk."""
    keyword, sep, rest = payload.partition(b'\x00')
    if sep == b'':
        raise ValueError('no null separator after the keyword')
    if not 1 <= len(keyword) <= 79:
        raise ValueError(f'invalid keyword length ({len(keyword)})')
    return keyword.decode('latin-1'), rest


def decode_text(payload):
    """Decode a tEXt chunk:  keyword, null, Latin-1 text."""
    keyword, rest = _split_keyword(payload)
    return TextualRecord(
        'tEXt', keyword, rest.decode('latin-1'), '', '', False
    )


def decode_ztxt(payload):
    """Decode a zTXt chunk:  keyword, null, method, deflated Latin-1 text."""
    keyword, rest = _split_keyword(payload)
    if len(rest) < 1:
        raise ValueError('missing compression method')
    if rest[0] != 0:
        raise ValueError(f'unsupported compression method ({rest[0]})')
    text = zlib.decompress(rest[1:]).decode('latin-1')
    return TextualRecord('zTXt', keyword, text, '', '', True)


def decode_itxt(payload):
    """Decode an iTXt chunk.

    The layout is keyword, null, compression flag, compression method,
    language tag, null, translated keyword, null, then UTF-8 text that is
    deflated if the flag is set.
    """
    keyword, rest = _split_keyword(payload)
    if len(rest) < 2:
        raise ValueError('missing compression flag or method')
    flag, method = rest[0], rest[1]
    if flag not in (0, 1):
        raise ValueError(f'invalid compression flag ({flag})')
    if flag == 1 and method != 0:
        raise ValueError(f'unsupported compression method ({method})')

    language, sep, rest = rest[2:].partition(b'\x00')
    if sep == b'':
        raise ValueError('no null separator after the language tag')
    translated, sep, text = rest.partition(b'\x00')
    if sep == b'':
        raise ValueError('no null separator after the translated keyword')

    if flag == 1:
        text = zlib.decompress(text)

    return TextualRecord(
        'iTXt', keyword, text.decode('utf-8'), language.decode('latin-1'),
        translated.decode('utf-8'), flag == 1
    )


_TEXT_DECODERS = {
    b'tEXt': decode_text,
    b'zTXt': decode_ztxt,
    b'iTXt': decode_itxt,
}


def parse(buffer, wanted=DEFAULT_WANTED, strict=None, max_depth=None):
    """Read the metadata of a PNG file.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    wanted : iterable, optional
        Chunk types to extract.  None means every chunk, an empty
        collection means nothing is extracted.  By default the textual and
        eXIf chunks are extracted.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
        Defaults to the 'parse.strict' option.
    max_depth : int, optional
        Deepest TIFF directory that will be followed.  Defaults to the
        'parse.max_depth' option.

    Returns
    -------
    Metadata
    """
    strict, max_depth = _resolve(strict, max_depth)

    reader = PngChunkReader(buffer, wanted=wanted, strict=strict)
    chunks = reader.read()

    metadata = Metadata(PNG)
    for chunk in chunks:

        if chunk.payload is None:
            continue

        if chunk.chunk_type in _TEXT_DECODERS:
            decoder = _TEXT_DECODERS[chunk.chunk_type]
            try:
                record = decoder(chunk.payload)
            except (ValueError, zlib.error) as e:
                msg = (
                    f'Unable to decode the '
                    f'{chunk.chunk_type.decode("latin-1")} chunk at offset '
                    f'{chunk.offset}:  {e}'
                )
                warnings.warn(msg, TextDecodeWarning)
                continue

            metadata._add_textual(record)
            if record.chunk_type == 'iTXt' and record.keyword == XMP_KEYWORD:
                tree = parse_xmp(record.text.encode('utf-8'))
                if tree is not None:
                    metadata._set_xmp(tree)

        elif chunk.chunk_type == b'eXIf':
            stream = read_tiff(
                chunk.payload, strict=strict, max_depth=max_depth
            )
            metadata._add_tiff(stream, strict=strict)

    return metadata._freeze()
