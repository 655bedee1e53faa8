"""Recognize the container format of a file and dispatch to its parser.
"""
# Standard library imports
import logging
import pathlib

# Local imports
from .core import ImageIOError, NotThisFormatError, JPEG, PNG, WEBP, HEIF, TIFF
from . import heif, jpeg, png, tiff, webp

logger = logging.getLogger(__name__)

_PARSERS = {
    JPEG: jpeg.parse,
    PNG: png.parse,
    WEBP: webp.parse,
    HEIF: heif.parse,
    TIFF: tiff.parse,
}


def detect_format(buffer):
    """Identify the container format from the leading bytes.

    Parameters
    ----------
    buffer : bytes-like
        At least the first 12 bytes of the file.

    Returns
    -------
    str
        One of 'JPEG', 'PNG', 'WEBP', 'HEIF', or 'TIFF'.

    Raises
    ------
    NotThisFormatError
        If no supported signature is recognized.
    """
    head = bytes(memoryview(buffer)[:12])
    if head[:2] == b'\xff\xd8':
        return JPEG
    if head[:8] == png.SIGNATURE:
        return PNG
    if head[:4] == b'RIFF' and head[8:12] == b'WEBP':
        return WEBP
    if head[4:8] == b'ftyp' and head[8:12] in heif.HEIF_BRANDS:
        return HEIF
    if head[:4] in (b'II*\x00', b'MM\x00*', b'II+\x00', b'MM\x00+'):
        return TIFF
    raise NotThisFormatError(f'Unrecognized file signature {head!r}.')


def parse(buffer, strict=None, max_depth=None):
    """Read the metadata of an image held in memory.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
        Defaults to the 'parse.strict' option.
    max_depth : int, optional
        Deepest nesting that will be followed.  Defaults to the
        'parse.max_depth' option.

    Returns
    -------
    Metadata
    """
    kind = detect_format(buffer)
    logger.debug(f'Detected {kind} format')
    return _PARSERS[kind](buffer, strict=strict, max_depth=max_depth)


def read(filename, strict=None, max_depth=None):
    """Read the metadata of an image file.

    Parameters
    ----------
    filename : str or path
        Image file to read.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
        Defaults to the 'parse.strict' option.
    max_depth : int, optional
        Deepest nesting that will be followed.  Defaults to the
        'parse.max_depth' option.

    Returns
    -------
    Metadata

    Raises
    ------
    ImageIOError
        If the file cannot be read.
    """
    path = pathlib.Path(filename)
    try:
        buffer = path.read_bytes()
    except OSError as e:
        msg = f'Unable to read {path}:  {e}'
        raise ImageIOError(msg) from e
    return parse(buffer, strict=strict, max_depth=max_depth)
