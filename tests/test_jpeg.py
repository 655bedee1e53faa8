"""
Tests for the JPEG segment scanner.
"""
# Standard library imports
import unittest

# Local imports
from picmeta import jpeg
from picmeta.core import IntegrityWarning, NotThisFormatError, StructuralError
from . import fixtures
from .fixtures import jpeg_file, jpeg_segment, exif_segments

XMP_PACKET = (
    b'<?xpacket begin="" id="W5M0MpCehiHzreSzNTczkc9d"?>'
    b'<x:xmpmeta xmlns:x="adobe:ns:meta/">'
    b'<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">'
    b'<rdf:Description rdf:about="" xmlns:xmp="http://ns.adobe.com/xap/1.0/"'
    b' xmp:CreatorTool="picmeta tests"/>'
    b'</rdf:RDF></x:xmpmeta><?xpacket end="w"?>'
)


def _summary(md):
    """Directory names mapped to (tag, display value) pairs."""
    return {
        d.identifier.name: [(e.tag, e.display_value()) for e in d]
        for d in md
    }


class TestSuite(fixtures.TestCommon):

    def setUp(self):
        super().setUp()
        self.tiff = fixtures.simple_exif()

    def test_single_exif_segment(self):
        """
        SCENARIO:  a JPEG with one APP1 Exif segment

        EXPECTED RESULT:  IFD0, EXIF, and GPS directories
        """
        data = jpeg_file(*exif_segments(self.tiff))
        md = jpeg.parse(data)
        self.assertEqual(md.format, 'JPEG')
        self.assertTrue(md.has_exif())
        self.assertEqual(
            [d.identifier.name for d in md], ['IFD0', 'EXIF', 'GPS']
        )
        self.assertEqual(
            md.get_directory('IFD0')['Model'].value, 'Canon EOS 5D Mark IV'
        )

    def test_split_exif_segments(self):
        """
        SCENARIO:  the same TIFF stream split over two APP1 Exif segments

        EXPECTED RESULT:  decodes identically to the unsplit version
        """
        whole = jpeg.parse(jpeg_file(*exif_segments(self.tiff)))

        n = len(self.tiff) // 2
        segments = exif_segments(self.tiff, [n, len(self.tiff) - n])
        data = jpeg_file(segments[0], jpeg_segment(0xE2, b'ICC_PROFILE\x00'),
                         segments[1])
        split = jpeg.parse(data)

        self.assertEqual(_summary(split), _summary(whole))

    def test_scanner_reassembles(self):
        segments = exif_segments(self.tiff, [10, 10, len(self.tiff) - 20])
        scanner = jpeg.JpegScanner(jpeg_file(*segments))
        scanner.scan()
        self.assertEqual(scanner.exif_segment_count, 3)
        self.assertEqual(scanner.exif, self.tiff)

    def test_no_exif(self):
        """
        SCENARIO:  a JPEG with no APP1 segment at all

        EXPECTED RESULT:  empty metadata, not an error
        """
        md = jpeg.parse(jpeg_file())
        self.assertFalse(md.has_exif())
        self.assertEqual(len(md), 0)
        self.assertFalse(md.has_metadata())

    def test_xmp_segment(self):
        """
        SCENARIO:  an APP1 XMP segment precedes the APP1 Exif segment

        EXPECTED RESULT:  the XMP segment is not mistaken for Exif, and the
        packet is parsed
        """
        xmp = jpeg_segment(
            0xE1, b'http://ns.adobe.com/xap/1.0/\x00' + XMP_PACKET
        )
        data = jpeg_file(xmp, *exif_segments(self.tiff))
        md = jpeg.parse(data)
        self.assertTrue(md.has_exif())
        self.assertIsNotNone(md.xmp)
        root = md.xmp.getroot()
        self.assertEqual(root.tag, '{adobe:ns:meta/}xmpmeta')

    def test_unrecognized_app1(self):
        data = jpeg_file(jpeg_segment(0xE1, b'FLIR\x00\x01junk'))
        md = jpeg.parse(data)
        self.assertFalse(md.has_exif())

    def test_skipped_segments_are_traced(self):
        """
        SCENARIO:  a file with JFIF, ICC, quantization, Huffman, frame and
        comment segments

        EXPECTED RESULT:  each skipped segment is logged by marker name, an
        unlisted marker by its code
        """
        data = jpeg_file(
            jpeg_segment(0xE2, b'ICC_PROFILE\x00'),
            jpeg_segment(0xC4, bytes(4)),
            jpeg_segment(0xC0, bytes(6)),
            jpeg_segment(0xFE, b'hello'),
            jpeg_segment(0xED, b'Photoshop 3.0\x00'),
        )
        with self.assertLogs(logger='picmeta.jpeg', level='DEBUG') as cm:
            jpeg.parse(data)
        output = '\n'.join(cm.output)
        for name in ('APP0', 'APP2', 'DHT', 'SOF0', 'COM', '0xed', 'DQT'):
            with self.subTest(name=name):
                self.assertIn(f'Skipping {name} segment', output)

    def test_resync(self):
        """
        SCENARIO:  filler bytes and 0xFF padding precede the APP1 marker

        EXPECTED RESULT:  the scanner resynchronizes and finds the Exif data
        """
        segment = exif_segments(self.tiff)[0]
        data = jpeg_file(b'\x00\x13\x37' + b'\xff\xff\xff' + segment)
        md = jpeg.parse(data)
        self.assertTrue(md.has_exif())

    def test_standalone_markers(self):
        """
        SCENARIO:  TEM and RST markers without length fields appear before the
        Exif segment

        EXPECTED RESULT:  they are skipped
        """
        data = jpeg_file(b'\xff\x01\xff\xd0\xff\xd7', *exif_segments(self.tiff))
        md = jpeg.parse(data)
        self.assertTrue(md.has_exif())

    def test_stop_at_sos(self):
        """
        SCENARIO:  an APP1 Exif segment is embedded after the start of scan

        EXPECTED RESULT:  it is never reached
        """
        data = jpeg_file(scan=exif_segments(self.tiff)[0])
        md = jpeg.parse(data)
        self.assertFalse(md.has_exif())

    def test_stop_at_eoi(self):
        data = b'\xff\xd8\xff\xd9' + exif_segments(self.tiff)[0]
        md = jpeg.parse(data)
        self.assertFalse(md.has_exif())

    def test_truncated(self):
        """
        SCENARIO:  the file ends in the middle of the second Exif segment

        EXPECTED RESULT:  no exception from the scanner, only the first
        segment's bytes are collected
        """
        segments = exif_segments(self.tiff, [20, len(self.tiff) - 20])
        data = b'\xff\xd8' + segments[0] + segments[1][:30]
        scanner = jpeg.JpegScanner(data)
        scanner.scan()
        self.assertEqual(scanner.exif, self.tiff[:20])

    def test_truncated_without_exif(self):
        """
        SCENARIO:  the file ends right after a segment length field

        EXPECTED RESULT:  empty metadata
        """
        md = jpeg.parse(b'\xff\xd8\xff\xe0\x00\x10JF')
        self.assertEqual(len(md), 0)

    def test_invalid_segment_length(self):
        """
        SCENARIO:  a segment length of 1

        EXPECTED RESULT:  a warning in lenient mode, an error in strict mode
        """
        data = jpeg_file(b'\xff\xe3\x00\x01', *exif_segments(self.tiff))
        with self.assertWarns(IntegrityWarning):
            md = jpeg.parse(data)
        self.assertTrue(md.has_exif())

        with self.assertRaises(StructuralError):
            jpeg.parse(data, strict=True)

    def test_not_a_jpeg(self):
        with self.assertRaises(NotThisFormatError):
            jpeg.parse(b'\x89PNG\r\n\x1a\n')
        with self.assertRaises(NotThisFormatError):
            jpeg.parse(b'')

    def test_corrupt_exif_payload(self):
        """
        SCENARIO:  the APP1 Exif payload does not start with a TIFF header

        EXPECTED RESULT:  StructuralError
        """
        data = jpeg_file(jpeg_segment(0xE1, b'Exif\x00\x00XX\x00\x2a'))
        with self.assertRaises(StructuralError):
            jpeg.parse(data)


if __name__ == '__main__':
    unittest.main()
