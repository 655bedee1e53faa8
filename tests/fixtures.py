"""
Test fixtures common to more than one test point.

Everything here builds small synthetic files in memory with struct, so the
tests need no sample images on disk.
"""

# Standard library imports
import pathlib
import shutil
import struct
import tempfile
import unittest
import zlib

# Local imports
import picmeta

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

_FORMAT = {
    BYTE: 'B', SHORT: 'H', LONG: 'I', RATIONAL: 'II', SBYTE: 'b',
    SSHORT: 'h', SLONG: 'i', SRATIONAL: 'ii', FLOAT: 'f', DOUBLE: 'd',
    IFD: 'I', LONG8: 'Q',
}

IMAGEWIDTH = 256
IMAGELENGTH = 257
MAKE = 271
MODEL = 272
ORIENTATION = 274
XRESOLUTION = 282
SOFTWARE = 305
SUBIFDS = 330
EXPOSURETIME = 33434
EXIF_IFD = 34665
GPS_IFD = 34853
EXIFVERSION = 36864
DATETIMEORIGINAL = 36867
INTEROP_IFD = 40965
GPSLATITUDEREF = 1
GPSLATITUDE = 2
INTEROPINDEX = 1


def entry(tag, dtype, values, endian='<'):
    """Pack a single TIFF entry as (tag, dtype, count, value bytes).

    ASCII values are given as str, UNDEFINED values as bytes, rationals as
    a sequence of (numerator, denominator) pairs.
    """
    if dtype == ASCII:
        data = values.encode('utf-8') + b'\x00'
        return (tag, dtype, len(data), data)
    if dtype == UNDEFINED:
        return (tag, dtype, len(values), bytes(values))
    if dtype in (RATIONAL, SRATIONAL):
        flat = [x for pair in values for x in pair]
        data = struct.pack(endian + _FORMAT[dtype] * len(values), *flat)
        return (tag, dtype, len(values), data)
    data = struct.pack(endian + _FORMAT[dtype] * len(values), *values)
    return (tag, dtype, len(values), data)


def ifd_length(entries, bigtiff=False):
    """Number of bytes make_ifd produces for these entries."""
    if bigtiff:
        nbytes = 8 + 20 * len(entries) + 8
        inline = 8
    else:
        nbytes = 2 + 12 * len(entries) + 4
        inline = 4
    for _, _, _, value in entries:
        if len(value) > inline:
            nbytes += len(value) + len(value) % 2
    return nbytes


def make_ifd(entries, offset, next_offset=0, endian='<', bigtiff=False):
    """
    Lay out a directory at the given offset.  Values that do not fit into
    their entry are written immediately after the directory.
    """
    if bigtiff:
        count_fmt, entry_fmt, inline, next_fmt = 'Q', 'HHQ', 8, 'Q'
        data_offset = offset + 8 + 20 * len(entries) + 8
    else:
        count_fmt, entry_fmt, inline, next_fmt = 'H', 'HHI', 4, 'I'
        data_offset = offset + 2 + 12 * len(entries) + 4

    body = struct.pack(endian + count_fmt, len(entries))
    extra = b''
    for tag, dtype, count, value in entries:
        body += struct.pack(endian + entry_fmt, tag, dtype, count)
        if len(value) <= inline:
            body += value.ljust(inline, b'\x00')
        else:
            position = data_offset + len(extra)
            body += struct.pack(endian + next_fmt, position)
            extra += value
            if len(value) % 2 == 1:
                extra += b'\x00'
    body += struct.pack(endian + next_fmt, next_offset)
    return body + extra


def tiff_header(first_offset=8, endian='<', bigtiff=False):
    order = b'II' if endian == '<' else b'MM'
    if bigtiff:
        return order + struct.pack(endian + 'HHHQ', 43, 8, 0, first_offset)
    return order + struct.pack(endian + 'HI', 42, first_offset)


def tiff_stream(ifd0, exif=None, gps=None, interop=None, ifd1=None,
                endian='<'):
    """
    Build a TIFF stream with IFD0 and optionally EXIF, GPS, Interop and IFD1
    directories.  The pointer entries are added automatically.  Directories
    are laid out in the order IFD0, EXIF, Interop, GPS, IFD1.
    """
    pointer = struct.pack(endian + 'I', 0)

    ifd0 = list(ifd0)
    if exif is not None:
        ifd0.append((EXIF_IFD, LONG, 1, pointer))
    if gps is not None:
        ifd0.append((GPS_IFD, LONG, 1, pointer))
    ifd0.sort(key=lambda x: x[0])

    if interop is not None:
        exif = sorted(
            list(exif) + [(INTEROP_IFD, LONG, 1, pointer)],
            key=lambda x: x[0]
        )

    offsets = {}
    position = 8 + ifd_length(ifd0)
    for name, entries in (
        ('exif', exif), ('interop', interop), ('gps', gps), ('ifd1', ifd1)
    ):
        if entries is not None:
            offsets[name] = position
            position += ifd_length(entries)

    def patch(entries, tag, name):
        patched = []
        for item in entries:
            if item[0] == tag:
                value = struct.pack(endian + 'I', offsets[name])
                item = (item[0], item[1], item[2], value)
            patched.append(item)
        return patched

    if exif is not None:
        ifd0 = patch(ifd0, EXIF_IFD, 'exif')
    if gps is not None:
        ifd0 = patch(ifd0, GPS_IFD, 'gps')
    if interop is not None:
        exif = patch(exif, INTEROP_IFD, 'interop')

    data = tiff_header(8, endian)
    data += make_ifd(ifd0, 8, offsets.get('ifd1', 0), endian)
    for name, entries in (
        ('exif', exif), ('interop', interop), ('gps', gps), ('ifd1', ifd1)
    ):
        if entries is not None:
            data += make_ifd(entries, offsets[name], 0, endian)
    return data


def simple_exif(endian='<'):
    """A TIFF stream with IFD0, EXIF, and GPS directories."""
    ifd0 = [
        entry(MAKE, ASCII, 'Canon', endian),
        entry(MODEL, ASCII, 'Canon EOS 5D Mark IV', endian),
        entry(ORIENTATION, SHORT, [1], endian),
        entry(XRESOLUTION, RATIONAL, [(72, 1)], endian),
    ]
    exif = [
        entry(EXPOSURETIME, RATIONAL, [(1, 250)], endian),
        entry(EXIFVERSION, UNDEFINED, b'0231', endian),
        entry(DATETIMEORIGINAL, ASCII, '2023:06:01 12:34:56', endian),
    ]
    gps = [
        entry(GPSLATITUDEREF, ASCII, 'N', endian),
        entry(GPSLATITUDE, RATIONAL, [(40, 1), (26, 1), (4638, 100)],
              endian),
    ]
    return tiff_stream(ifd0, exif=exif, gps=gps, endian=endian)


# JPEG

def jpeg_segment(marker, payload):
    return struct.pack('>BBH', 0xFF, marker, len(payload) + 2) + payload


def jpeg_file(*segments, scan=b'\x12\x34\xff\x00\x56'):
    """
    SOI, JFIF APP0, the given segments, a DQT, SOS with a bit of entropy
    coded data, then EOI.
    """
    data = b'\xff\xd8'
    data += jpeg_segment(0xE0, b'JFIF\x00\x01\x02\x00\x00\x01\x00\x01\x00\x00')
    for segment in segments:
        data += segment
    data += jpeg_segment(0xDB, bytes(65))
    data += jpeg_segment(0xDA, bytes(10)) + scan
    data += b'\xff\xd9'
    return data


def exif_segments(tiff, sizes=None):
    """Split a TIFF stream into APP1 Exif segments of the given sizes."""
    if sizes is None:
        sizes = [len(tiff)]
    segments = []
    position = 0
    for size in sizes:
        payload = b'Exif\x00\x00' + tiff[position:position + size]
        segments.append(jpeg_segment(0xE1, payload))
        position += size
    return segments


# PNG

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'
IHDR_PAYLOAD = struct.pack('>IIBBBBB', 1, 1, 8, 2, 0, 0, 0)


def png_chunk(chunk_type, payload, crc=None):
    if crc is None:
        crc = zlib.crc32(chunk_type + payload) & 0xffffffff
    return struct.pack('>I', len(payload)) + chunk_type + payload \
        + struct.pack('>I', crc)


def png_file(*chunks, ihdr=True, iend=True):
    data = PNG_SIGNATURE
    if ihdr:
        data += png_chunk(b'IHDR', IHDR_PAYLOAD)
    for chunk in chunks:
        data += chunk
    data += png_chunk(b'IDAT', zlib.compress(b'\x00\x00\x00\x00'))
    if iend:
        data += png_chunk(b'IEND', b'')
    return data


# WebP

def webp_chunk(fourcc, payload):
    data = fourcc + struct.pack('<I', len(payload)) + payload
    if len(payload) % 2 == 1:
        data += b'\x00'
    return data


def webp_file(*chunks, first=None, declared_size=None):
    if first is None:
        first = webp_chunk(b'VP8X', bytes(10))
    body = b'WEBP' + first + b''.join(chunks)
    if declared_size is None:
        declared_size = len(body)
    return b'RIFF' + struct.pack('<I', declared_size) + body


# HEIF

def box(box_id, payload):
    return struct.pack('>I', len(payload) + 8) + box_id + payload


def full_box(box_id, version, flags, payload):
    return box(box_id, struct.pack('>I', (version << 24) | flags) + payload)


def infe(item_id, item_type, name=b'', extra=b''):
    payload = struct.pack('>HH', item_id, 0) + item_type + name + b'\x00'
    return full_box(b'infe', 2, 0, payload + extra)


def iloc(items, construction_method=None):
    """
    Version 0 (or 1 when a construction method is given) item location box
    with 4-byte offsets and lengths.  items maps id to a list of
    (offset, length) extents.
    """
    version = 0 if construction_method is None else 1
    payload = struct.pack('>BBH', 0x44, 0x00, len(items))
    for item_id, extents in items.items():
        payload += struct.pack('>H', item_id)
        if version == 1:
            payload += struct.pack('>H', construction_method)
        payload += struct.pack('>HH', 0, len(extents))
        for offset, length in extents:
            payload += struct.pack('>II', offset, length)
    return full_box(b'iloc', version, 0, payload)


def ftyp(brand=b'heic'):
    return box(b'ftyp', brand + struct.pack('>I', 0) + b'mif1' + brand)


def heif_file(exif_item=None, extents=None, item_entries=None,
              with_iloc=True, with_iinf=True, tiff_offset=6):
    """
    Build a HEIF file whose meta box describes an image item (1) and,
    optionally, an Exif item (2) stored in the mdat box.

    Parameters
    ----------
    exif_item : bytes, optional
        TIFF stream of the Exif item.
    extents : list, optional
        Lengths to split the Exif item data into.  By default one extent.
    item_entries : list, optional
        Replacement infe boxes.
    """
    if exif_item is not None:
        item_data = struct.pack('>I', tiff_offset) + b'Exif\x00\x00'
        item_data += exif_item
    else:
        item_data = b''
    image_data = b'\x00' * 16

    if item_entries is None:
        item_entries = [infe(1, b'hvc1')]
        if exif_item is not None:
            item_entries.append(infe(2, b'Exif'))

    def build_meta(mdat_start):
        children = full_box(b'hdlr', 0, 0, bytes(4) + b'pict' + bytes(12)
                            + b'\x00')
        children += full_box(b'pitm', 0, 0, struct.pack('>H', 1))
        if with_iinf:
            children += full_box(
                b'iinf', 0, 0,
                struct.pack('>H', len(item_entries)) + b''.join(item_entries)
            )
        if with_iloc:
            items = {1: [(mdat_start, len(image_data))]}
            if exif_item is not None:
                lengths = extents or [len(item_data)]
                position = mdat_start + len(image_data)
                item_extents = []
                for length in lengths:
                    item_extents.append((position, length))
                    position += length
                items[2] = item_extents
            children += iloc(items)
        return full_box(b'meta', 0, 0, children)

    head = ftyp()
    meta = build_meta(0)
    mdat_start = len(head) + len(meta) + 8
    meta = build_meta(mdat_start)
    return head + meta + box(b'mdat', image_data + item_data)


class TestCommon(unittest.TestCase):
    """
    Common setup for many if not all tests.
    """

    def setUp(self):
        picmeta.reset_option('all')

        # Create a temporary directory to be cleaned up following each test.
        self.test_dir = tempfile.mkdtemp()
        self.test_dir_path = pathlib.Path(self.test_dir)

    def tearDown(self):
        picmeta.reset_option('all')
        shutil.rmtree(self.test_dir)
