# standard library imports
from collections import namedtuple
import enum
import logging

# local imports
from .core import (
    _dispatch_integrity, NotThisFormatError, TruncatedDataError,
    BIG_ENDIAN, EXIF_IDENTIFIER, XMP_IDENTIFIER, JPEG
)
from .cursor import ByteCursor
from .metadata import Metadata
from .options import _resolve
from .tiff import read_tiff
from .xmp import parse_xmp

logger = logging.getLogger(__name__)


class Marker(enum.IntEnum):
    TEM = 0x01
    SOF0 = 0xC0
    DHT = 0xC4
    RST0 = 0xD0
    RST7 = 0xD7
    SOI = 0xD8
    EOI = 0xD9
    SOS = 0xDA
    DQT = 0xDB
    APP0 = 0xE0
    APP1 = 0xE1
    APP2 = 0xE2
    COM = 0xFE


def _marker_name(marker):
    try:
        return Marker(marker).name
    except ValueError:
        return f'0x{marker:02x}'


Segment = namedtuple('Segment', ['marker', 'offset', 'length', 'payload'])
Segment.__doc__ = """\
A marker segment.  The length includes the two length bytes themselves, the
payload is only retained for APP1 segments.
"""


class JpegScanner(object):
    """
    Walk the marker segments of a JPEG stream up to the start of scan.

    Attributes
    ----------
    cursor : ByteCursor
        Reader over the JPEG stream.
    segments : list
        Segments with a length field, in file order.
    exif : bytes or None
        Payloads of all APP1 Exif segments, identifier stripped, joined in
        file order.  None if there were no such segments.
    exif_segment_count : int
        Number of APP1 Exif segments seen.
    xmp_packet : bytes or None
        Payload of the first APP1 XMP segment, namespace stripped.
    """

    def __init__(self, buffer, strict=False):
        self.cursor = ByteCursor(buffer, BIG_ENDIAN)
        self.strict = strict
        self.segments = []
        self.exif = None
        self.exif_segment_count = 0
        self.xmp_packet = None

    def scan(self):
        """Collect the APPx metadata payloads."""
        cursor = self.cursor
        if len(cursor) < 2 or cursor.peek(0, 2) != b'\xff\xd8':
            msg = 'The stream does not start with a JPEG SOI marker.'
            raise NotThisFormatError(msg)

        exif = bytearray()

        eof = False
        while not eof:

            try:
                marker = self._next_marker()
            except TruncatedDataError:
                logger.debug('The stream ended before an EOI marker.')
                break

            match marker:

                case Marker.SOI | Marker.TEM:
                    # marker-only
                    pass

                case m if Marker.RST0 <= m <= Marker.RST7:
                    # marker-only
                    pass

                case Marker.SOS:
                    # Entropy-coded data follows, nothing more of interest.
                    logger.debug(f'SOS marker at offset {cursor.tell() - 2}')
                    eof = True

                case Marker.EOI:
                    eof = True

                case _:
                    try:
                        eof = not self._process_segment(marker, exif)
                    except TruncatedDataError:
                        offset = cursor.tell()
                        msg = (
                            f'The segment for marker 0x{marker:02x} runs past '
                            f'the end of the stream at offset {offset}.'
                        )
                        logger.debug(msg)
                        eof = True

        if self.exif_segment_count > 0:
            self.exif = bytes(exif)

    def _next_marker(self):
        """Resynchronize on the next marker and return its code."""
        cursor = self.cursor
        skipped = 0
        while True:
            while cursor.read_u8() != 0xFF:
                skipped += 1
            marker = cursor.read_u8()
            # collapse any fill bytes
            while marker == 0xFF:
                marker = cursor.read_u8()
            if marker != 0x00:
                break
            # a stuffed zero byte is not a marker
            skipped += 2

        if skipped > 0:
            msg = (
                f'Skipped {skipped} bytes before the marker at offset '
                f'{cursor.tell() - 2}.'
            )
            logger.debug(msg)
        return marker

    def _process_segment(self, marker, exif):
        """Read or skip the payload of a segment with a length field.

        Returns False if scanning should stop.
        """
        cursor = self.cursor
        offset = cursor.tell() - 2
        length = cursor.read_u16()

        if length < 2:
            msg = (
                f'The segment for marker 0x{marker:02x} at offset {offset} '
                f'has an invalid length ({length}).'
            )
            _dispatch_integrity(msg, self.strict)
            return True

        if marker != Marker.APP1:
            logger.debug(
                f'Skipping {_marker_name(marker)} segment at offset {offset}, '
                f'{length} bytes'
            )
            cursor.skip(length - 2)
            self.segments.append(Segment(marker, offset, length, None))
            return True

        payload = cursor.read_bytes(length - 2)
        self.segments.append(Segment(marker, offset, length, payload))

        if payload.startswith(EXIF_IDENTIFIER):
            self.exif_segment_count += 1
            exif.extend(payload[len(EXIF_IDENTIFIER):])
            msg = (
                f'APP1 Exif segment #{self.exif_segment_count} at offset '
                f'{offset}, {length - 2 - len(EXIF_IDENTIFIER)} bytes'
            )
            logger.debug(msg)
        elif payload.startswith(XMP_IDENTIFIER):
            if self.xmp_packet is None:
                self.xmp_packet = payload[len(XMP_IDENTIFIER):]
            else:
                logger.debug(f'Ignoring extra XMP segment at offset {offset}')
        else:
            msg = f'Unrecognized APP1 segment at offset {offset}'
            logger.info(msg)

        return True


def parse(buffer, strict=None, max_depth=None):
    """Read the metadata of a JPEG file.

    Every APP1 Exif segment is used; a large EXIF block may be split across
    several of them and is reassembled in file order.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
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

    scanner = JpegScanner(buffer, strict=strict)
    scanner.scan()

    metadata = Metadata(JPEG)
    if scanner.exif is not None:
        stream = read_tiff(scanner.exif, strict=strict, max_depth=max_depth)
        metadata._add_tiff(stream, strict=strict)
    else:
        logger.info('No Exif metadata found.')

    if scanner.xmp_packet is not None:
        tree = parse_xmp(scanner.xmp_packet)
        if tree is not None:
            metadata._set_xmp(tree)

    return metadata._freeze()
