"""picmeta - read EXIF and related metadata from image files."""

__all__ = [
    'get_option', 'set_option', 'reset_option',
    'Metadata', 'TextualRecord',
    'PicmetaError', 'StructuralError', 'TruncatedDataError',
    'NotThisFormatError', 'ImageIOError',
    'IntegrityWarning', 'TextDecodeWarning', 'XMPWarning',
    'DirectoryType', 'FieldType',
    'detect_format', 'parse', 'read',
]

# Local imports
from picmeta import version
from .options import get_option, set_option, reset_option
from .core import (PicmetaError, StructuralError, TruncatedDataError,
                   NotThisFormatError, ImageIOError, IntegrityWarning,
                   TextDecodeWarning, XMPWarning)
from .metadata import Metadata, TextualRecord
from .tiff import DirectoryType, FieldType
from .reader import detect_format, parse, read

__version__ = version.version
