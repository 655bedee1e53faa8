"""XMP packets found in JPEG APP1 segments, PNG iTXt chunks and WebP chunks.
"""
# Standard library imports
import io
import warnings

# 3rd party library imports
import lxml.etree as ET

# Local imports
from .core import XMPWarning


def parse_xmp(packet):
    """Parse an XMP packet.

    Parameters
    ----------
    packet : bytes
        The raw packet, normally starting with an <?xpacket?> processing
        instruction.

    Returns
    -------
    lxml.etree._ElementTree or None
        None if the packet is not well-formed XML.
    """
    # Strip any trailing padding so that the parser does not complain about
    # junk after the document element.
    packet = bytes(packet).rstrip(b'\x00 \t\r\n')
    try:
        parser = ET.XMLParser(resolve_entities=False, no_network=True)
        return ET.parse(io.BytesIO(packet), parser)
    except ET.XMLSyntaxError as e:
        msg = f'Unable to parse the XMP packet:  {e}'
        warnings.warn(msg, XMPWarning)
        return None
