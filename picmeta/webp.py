"""WebP (RIFF) chunk reader.

References
----------
.. [WEBP] Google.  WebP Container Specification.
   https://developers.google.com/speed/webp/docs/riff_container
"""
# Standard library imports
from collections import namedtuple
import logging

# Local imports
from .core import (
    NotThisFormatError, StructuralError, TruncatedDataError,
    LITTLE_ENDIAN, EXIF_IDENTIFIER, WEBP
)
from .cursor import ByteCursor
from .metadata import Metadata
from .options import _resolve
from .tiff import read_tiff
from .xmp import parse_xmp

logger = logging.getLogger(__name__)

# The only chunk types allowed to come first.
BITSTREAM_CHUNKS = frozenset((b'VP8 ', b'VP8L', b'VP8X'))

# Known chunk types and whether more than one may appear.
CHUNK_TYPES = {
    b'VP8 ': False,
    b'VP8L': False,
    b'VP8X': False,
    b'ALPH': False,
    b'ANIM': False,
    b'ANMF': True,
    b'ICCP': False,
    b'EXIF': False,
    b'XMP ': False,
}

DEFAULT_WANTED = frozenset((b'EXIF', b'XMP '))

WebpChunk = namedtuple('WebpChunk', ['fourcc', 'offset', 'size', 'payload'])
WebpChunk.__doc__ = """\
A RIFF chunk.  The payload is None unless the chunk type was wanted.
"""


class WebpChunkReader(object):
    """Walk the chunks of a WebP file.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    wanted : iterable, optional
        Chunk types whose payloads are retained.  None means every chunk, an
        empty collection means none.
    """

    def __init__(self, buffer, wanted=None):
        self.cursor = ByteCursor(buffer, LITTLE_ENDIAN)
        if wanted is not None:
            wanted = frozenset(
                x.encode('latin-1') if isinstance(x, str) else bytes(x)
                for x in wanted
            )
        self.wanted = wanted
        self.file_size = None
        self.chunks = []

    def read(self):
        """Read every chunk.

        Returns
        -------
        list
            WebpChunk objects in file order.
        """
        self.file_size = self._read_header()
        cursor = self.cursor

        seen = set()
        while cursor.tell() < self.file_size:

            offset = cursor.tell()
            if self.file_size - offset < 8:
                msg = (
                    f'Only {self.file_size - offset} bytes left at offset '
                    f'{offset}, not enough for a chunk header.'
                )
                raise TruncatedDataError(msg)

            fourcc = cursor.read_fourcc()
            size = cursor.read_u32()

            if size > self.file_size - cursor.tell():
                msg = (
                    f'The {fourcc} chunk at offset {offset} declares a size of '
                    f'{size} bytes, more than the rest of the file.'
                )
                raise StructuralError(msg)

            if len(self.chunks) == 0 and fourcc not in BITSTREAM_CHUNKS:
                msg = (
                    f'The first chunk must be either VP8, VP8L, or VP8X, '
                    f'but found {fourcc}.'
                )
                raise StructuralError(msg)

            if fourcc in seen and not CHUNK_TYPES.get(fourcc, True):
                logger.warning(f'Duplicate {fourcc} chunk at offset {offset}')
            seen.add(fourcc)

            if self.wanted is None or fourcc in self.wanted:
                payload = cursor.read_bytes(size)
                logger.debug(f'{fourcc} chunk at offset {offset} retained')
            else:
                cursor.skip(size)
                payload = None
                logger.debug(f'{fourcc} chunk at offset {offset} skipped')

            self.chunks.append(WebpChunk(fourcc, offset, size, payload))

            # chunks are padded to an even length
            if size % 2 == 1 and cursor.tell() < self.file_size:
                cursor.skip(1)

        return self.chunks

    def _read_header(self):
        """Verify the RIFF header and return the declared file size."""
        cursor = self.cursor
        if len(cursor) < 12 or cursor.peek(0, 4) != b'RIFF':
            raise NotThisFormatError('The RIFF header was not found.')
        cursor.seek(4)
        file_size = cursor.read_u32() + 8
        if cursor.read_fourcc() != b'WEBP':
            raise NotThisFormatError('The RIFF form type is not WEBP.')

        if file_size > len(cursor):
            msg = (
                f'The declared file size ({file_size} bytes) exceeds the '
                f'actual file length ({len(cursor)} bytes).'
            )
            raise StructuralError(msg)
        return file_size


def parse(buffer, wanted=DEFAULT_WANTED, strict=None, max_depth=None):
    """Read the metadata of a WebP file.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    wanted : iterable, optional
        Chunk types to extract.  By default the EXIF and XMP chunks.
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

    reader = WebpChunkReader(buffer, wanted=wanted)
    chunks = reader.read()

    metadata = Metadata(WEBP)
    for chunk in chunks:

        if chunk.payload is None:
            continue

        if chunk.fourcc == b'EXIF' and metadata.tiff_header is None:
            payload = chunk.payload
            if payload.startswith(EXIF_IDENTIFIER):
                # Some tools copy the JPEG APP1 identifier along.
                logger.debug('Stripping Exif identifier from EXIF chunk')
                payload = payload[len(EXIF_IDENTIFIER):]
            stream = read_tiff(payload, strict=strict, max_depth=max_depth)
            metadata._add_tiff(stream, strict=strict)

        elif chunk.fourcc == b'XMP ':
            tree = parse_xmp(chunk.payload)
            if tree is not None:
                metadata._set_xmp(tree)

    return metadata._freeze()
