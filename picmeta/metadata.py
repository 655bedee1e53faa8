"""The queryable result of parsing one image file.
"""
# Standard library imports
from collections import OrderedDict, namedtuple
import textwrap

# Local imports
from .core import _dispatch_integrity
from .options import get_option


TextualRecord = namedtuple(
    'TextualRecord',
    [
        'chunk_type', 'keyword', 'text', 'language', 'translated_keyword',
        'compressed'
    ]
)
TextualRecord.__doc__ = """\
Keyword/value pair decoded from a PNG tEXt, zTXt, or iTXt chunk.

The language and translated keyword are only carried by iTXt chunks and are
empty strings otherwise.
"""


class Metadata(object):
    """Metadata extracted from a single image file.

    Populated once while the file is parsed, read-only afterwards.

    Attributes
    ----------
    format : str
        Container format, e.g. 'JPEG' or 'PNG'.
    tiff_header : TiffHeader or None
        Header of the TIFF stream the directories came from, if any.
    xmp : lxml.etree._ElementTree or None
        Parsed XMP packet, if any.
    """

    def __init__(self, format):
        self.format = format
        self.tiff_header = None
        self.xmp = None
        self._directories = OrderedDict()
        self._textual = []
        self._frozen = False

    def __repr__(self):
        msg = "picmeta.metadata.Metadata(format='{0}', directories=[{1}])"
        names = ', '.join(d.name for d in self._directories)
        return msg.format(self.format, names)

    def __str__(self):
        lines = [f'{self.format} metadata']
        short = get_option('print.short')
        for directory in self._directories.values():
            if short:
                text = f'{directory.identifier.name}: {len(directory)} entries'
            else:
                text = str(directory)
            lines.append(textwrap.indent(text, '    '))
        if len(self._textual) > 0:
            lines.append('    Textual records:')
            for record in self._textual:
                lines.append(f'        {record.keyword}: {record.text}')
        if self.xmp is not None:
            lines.append('    XMP packet present')
        return '\n'.join(lines)

    def __iter__(self):
        return iter(self._directories.values())

    def __len__(self):
        return len(self._directories)

    def __contains__(self, identifier):
        return self._lookup(identifier) is not None

    def _lookup(self, identifier):
        if isinstance(identifier, str):
            for key in self._directories:
                if key.name == identifier.upper():
                    return key
            return None
        return identifier if identifier in self._directories else None

    def _check_frozen(self):
        if self._frozen:
            raise RuntimeError('Metadata cannot be changed after parsing.')

    def _add_directory(self, directory, strict=False):
        """Add one directory, refusing a second one with the same identifier.

        Returns
        -------
        bool
            True if the directory was added.
        """
        self._check_frozen()
        if directory.identifier in self._directories:
            msg = (
                f'A {directory.identifier.name} directory has already been '
                f'read; the one at offset {directory.offset} is ignored.'
            )
            _dispatch_integrity(msg, strict)
            return False
        self._directories[directory.identifier] = directory
        return True

    def _add_tiff(self, stream, strict=False):
        """Add every directory read from a TIFF stream."""
        self._check_frozen()
        if self.tiff_header is None:
            self.tiff_header = stream.header
        for directory in stream.directories:
            self._add_directory(directory, strict=strict)

    def _add_textual(self, record):
        self._check_frozen()
        self._textual.append(record)

    def _set_xmp(self, tree):
        self._check_frozen()
        if self.xmp is None:
            self.xmp = tree

    def _freeze(self):
        self._frozen = True
        return self

    @property
    def directories(self):
        return tuple(self._directories.values())

    @property
    def textual(self):
        return tuple(self._textual)

    def get_directory(self, identifier):
        """Return the directory for an identifier, or None if absent.

        Parameters
        ----------
        identifier : DirectoryType or str
            Either the enumerated identifier or its name, e.g. 'GPS'.
        """
        key = self._lookup(identifier)
        if key is None:
            return None
        return self._directories[key]

    def has_exif(self):
        """True if an EXIF directory was found."""
        return self._lookup('EXIF') is not None

    def has_metadata(self):
        return (
            len(self._directories) > 0
            or len(self._textual) > 0
            or self.xmp is not None
        )

    def get_textual(self, keyword):
        """Return all textual records with the given keyword, in file order."""
        return [record for record in self._textual if record.keyword == keyword]
