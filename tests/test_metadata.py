"""
Tests for the metadata aggregate.
"""
# Standard library imports
import unittest

# Local imports
import picmeta
from picmeta import tiff
from picmeta.core import IntegrityWarning, StructuralError
from picmeta.metadata import Metadata, TextualRecord
from picmeta.tiff import DirectoryType
from . import fixtures


class TestSuite(fixtures.TestCommon):

    def setUp(self):
        super().setUp()
        self.stream = tiff.read_tiff(fixtures.simple_exif())

    def _metadata(self):
        md = Metadata('JPEG')
        md._add_tiff(self.stream)
        return md

    def test_lookup(self):
        """
        SCENARIO:  look up directories by enumerated identifier, by name,
        and by lowercase name

        EXPECTED RESULT:  the same directory each time
        """
        md = self._metadata()._freeze()
        gps = md.get_directory(DirectoryType.GPS)
        self.assertIs(md.get_directory('GPS'), gps)
        self.assertIs(md.get_directory('gps'), gps)
        self.assertIn('EXIF', md)
        self.assertIn(DirectoryType.IFD0, md)
        self.assertNotIn('INTEROP', md)
        self.assertIsNone(md.get_directory(DirectoryType.IFD1))
        self.assertIsNone(md.get_directory('no such thing'))

    def test_iteration_order(self):
        md = self._metadata()._freeze()
        self.assertEqual(len(md), 3)
        self.assertEqual(
            [d.identifier for d in md],
            [DirectoryType.IFD0, DirectoryType.EXIF, DirectoryType.GPS]
        )
        self.assertEqual(md.directories, tuple(md))
        self.assertEqual(md.tiff_header.endian, '<')

    def test_duplicate_directory(self):
        """
        SCENARIO:  the same TIFF stream is added twice

        EXPECTED RESULT:  a warning for each repeated directory, the first
        copies are kept; in strict mode an error
        """
        md = self._metadata()
        first = md.get_directory('IFD0')
        other = tiff.read_tiff(fixtures.simple_exif('>'))
        with self.assertWarns(IntegrityWarning):
            md._add_tiff(other)
        self.assertEqual(len(md), 3)
        self.assertIs(md.get_directory('IFD0'), first)
        self.assertEqual(md.tiff_header.endian, '<')

        md = self._metadata()
        with self.assertRaises(StructuralError):
            md._add_directory(other.directories[0], strict=True)

    def test_frozen(self):
        """
        SCENARIO:  try to change the metadata after parsing

        EXPECTED RESULT:  RuntimeError
        """
        md = self._metadata()._freeze()
        with self.assertRaises(RuntimeError):
            md._add_tiff(self.stream)
        with self.assertRaises(RuntimeError):
            md._add_textual(TextualRecord('tEXt', 'a', 'b', '', '', False))
        with self.assertRaises(RuntimeError):
            md._set_xmp(None)

    def test_textual(self):
        md = Metadata('PNG')
        self.assertFalse(md.has_metadata())
        md._add_textual(TextualRecord('tEXt', 'Title', 'One', '', '', False))
        md._add_textual(TextualRecord('tEXt', 'Author', 'Me', '', '', False))
        md._add_textual(TextualRecord('zTXt', 'Title', 'Two', '', '', True))
        md._freeze()

        self.assertTrue(md.has_metadata())
        self.assertFalse(md.has_exif())
        self.assertEqual([r.text for r in md.get_textual('Title')],
                         ['One', 'Two'])
        self.assertEqual(md.get_textual('Nothing'), [])
        self.assertEqual(len(md.textual), 3)

    def test_printing(self):
        """
        SCENARIO:  print metadata in full and in short form

        EXPECTED RESULT:  entries are listed only in the full form
        """
        md = self._metadata()
        md._add_textual(TextualRecord('tEXt', 'Title', 'Sunset', '', '',
                                      False))
        md._freeze()

        actual = str(md)
        self.assertTrue(actual.startswith('JPEG metadata'))
        self.assertIn('    EXIF directory @', actual)
        self.assertIn('        ExposureTime (33434): 1/250', actual)
        self.assertIn('        Title: Sunset', actual)

        picmeta.set_option('print.short', True)
        actual = str(md)
        self.assertIn('    IFD0: 6 entries', actual)
        self.assertNotIn('ExposureTime', actual)

    def test_repr(self):
        md = self._metadata()._freeze()
        self.assertEqual(
            repr(md),
            "picmeta.metadata.Metadata(format='JPEG', "
            "directories=[IFD0, EXIF, GPS])"
        )


if __name__ == '__main__':
    unittest.main()
