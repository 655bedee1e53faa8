"""Core definitions to be shared amongst the modules.
"""
# Standard library imports
import warnings


class PicmetaError(Exception):
    """Base class for all errors raised while reading image metadata."""
    pass


class StructuralError(PicmetaError, ValueError):
    """The byte stream violates the framing rules of its format.

    Header or signature mismatches, mandatory records that are missing or out
    of place, and offsets or lengths that point outside the buffer all end up
    here.  Parsing of the current file is abandoned.
    """
    pass


class TruncatedDataError(StructuralError):
    """A read would have gone past the end of the buffer."""
    pass


class NotThisFormatError(StructuralError):
    """The buffer does not start with the expected signature."""
    pass


class ImageIOError(PicmetaError, OSError):
    """The file could not be loaded into memory."""
    pass


class IntegrityWarning(UserWarning):
    """A recoverable problem was found and the offending unit was skipped.

    Strict parsing turns these into StructuralError.
    """
    pass


class TextDecodeWarning(IntegrityWarning):
    """A single PNG textual chunk could not be decoded."""
    pass


class XMPWarning(IntegrityWarning):
    """An XMP packet is not well-formed XML."""
    pass


def _dispatch_integrity(msg, strict=False):
    """Issue either a warning or an error depending on circumstance.

    In strict mode an integrity problem is as bad as a structural one.
    Otherwise we should be more lenient and just warn.
    """
    if strict:
        raise StructuralError(msg)
    else:
        warnings.warn(msg, IntegrityWarning, stacklevel=3)


# Byte order marks.
LITTLE_ENDIAN = '<'
BIG_ENDIAN = '>'

# Prefix used by JPEG APP1 segments (and occasionally WebP EXIF chunks) to
# announce an EXIF payload.
EXIF_IDENTIFIER = b'Exif\x00\x00'

# Namespace used to announce an XMP packet in a JPEG APP1 segment.
XMP_IDENTIFIER = b'http://ns.adobe.com/xap/1.0/\x00'

# Human-readable names of the supported containers.
JPEG = 'JPEG'
PNG = 'PNG'
WEBP = 'WEBP'
HEIF = 'HEIF'
TIFF = 'TIFF'
