"""Classes for the HEIF (ISOBMFF) boxes needed to find item metadata.

References
----------
.. [ISO14496-12] International Organization for Standardization.  ISO/IEC
   14496-12 - Information technology -- Coding of audio-visual objects --
   Part 12: ISO base media file format

.. [ISO23008-12] International Organization for Standardization.  ISO/IEC
   23008-12 - Information technology -- High efficiency coding and media
   delivery in heterogeneous environments -- Part 12: Image File Format
"""
# Standard library imports
from collections import namedtuple
import enum
import logging
import textwrap
from uuid import UUID

# Local imports
from .core import (
    _dispatch_integrity, NotThisFormatError, StructuralError, BIG_ENDIAN,
    HEIF
)
from .cursor import ByteCursor
from .metadata import Metadata
from .options import _resolve
from .tiff import read_tiff
from .xmp import parse_xmp

logger = logging.getLogger(__name__)

# Brands that identify a HEIF-family file.
HEIF_BRANDS = frozenset((
    b'heic', b'heix', b'hevc', b'hevx', b'heim', b'heis', b'mif1', b'msf1',
    b'avif', b'avis',
))

XMP_CONTENT_TYPE = 'application/rdf+xml'

Extent = namedtuple('Extent', ['offset', 'length'])

ItemLocation = namedtuple(
    'ItemLocation',
    [
        'item_id', 'construction_method', 'data_reference_index',
        'base_offset', 'extents'
    ]
)

ItemReference = namedtuple(
    'ItemReference', ['reference_type', 'from_item_id', 'to_item_ids']
)


class BoxCategory(enum.Enum):
    LEAF = 'leaf'
    CONTAINER = 'container'
    UNKNOWN = 'unknown'


def _read_version_flags(cursor):
    """Read the version and flags of a full box."""
    version = cursor.read_u8()
    flags = int.from_bytes(cursor.read_bytes(3), 'big')
    return version, flags


def _read_cstring(cursor):
    """Read a null-terminated UTF-8 string.

    A string that runs to the end of the box without a terminator is
    accepted as is.
    """
    data = cursor.peek(cursor.tell(), cursor.remaining())
    idx = data.find(b'\x00')
    if idx == -1:
        cursor.skip(len(data))
        return data.decode('utf-8', errors='replace')
    cursor.skip(idx + 1)
    return data[:idx].decode('utf-8', errors='replace')


class HeifBox(object):
    """Superclass for HEIF boxes.

    Attributes
    ----------
    box_id : bytes
        4-character identifier for the box.
    length : int
        length of the box in bytes.
    offset : int
        offset of the box from the start of the file.
    header_size : int
        Number of bytes in the box header, 8 or 16.
    box : list
        Child boxes, empty unless this is a container.
    """
    box_id = None
    longname = None
    category = BoxCategory.LEAF

    def __init__(self, offset=0, length=0):
        self.length = length
        self.offset = offset
        self.header_size = 8
        self.box = []

    def __repr__(self):
        msg = "picmeta.heif.HeifBox(box_id={id}, offset={offset}, "
        msg += "length={length}, longname='{longname}')"
        msg = msg.format(id=self.box_id, offset=self.offset,
                         length=self.length, longname=self.longname)
        return msg

    def __str__(self):
        box_id = self.box_id.decode('latin-1')
        msg = "{0} Box ({1})".format(self.longname, box_id)
        msg += " @ ({0}, {1})".format(self.offset, self.length)
        return msg

    def _str_superbox(self):
        """__str__ method for all superboxes."""
        msg = HeifBox.__str__(self)
        for box in self.box:
            boxstr = str(box)
            # Indent the child boxes to make the association clear.
            msg += '\n' + textwrap.indent(boxstr, '    ')
        return msg

    @property
    def data_offset(self):
        """Offset of the first byte after the box header."""
        return self.offset + self.header_size

    @classmethod
    def parse(cls, cursor, offset, length):
        """Parse the box payload.

        Parameters
        ----------
        cursor : ByteCursor
            Reader over the box payload only, positioned at its start.
        offset : int
            Start position of the box in the file.
        length : int
            Length of the box in bytes.
        """
        return cls(offset=offset, length=length)


class UnknownBox(HeifBox):
    """A box this package does not interpret.

    Attributes
    ----------
    box_id : bytes
        4-character identifier for the box.
    """
    longname = 'Unknown'
    category = BoxCategory.UNKNOWN

    def __init__(self, box_id, offset=0, length=0):
        super().__init__(offset=offset, length=length)
        self.box_id = box_id

    def __repr__(self):
        msg = "picmeta.heif.UnknownBox(box_id={0}, offset={1}, length={2})"
        return msg.format(self.box_id, self.offset, self.length)


class _ContainerBox(HeifBox):
    """Common parsing for boxes consisting of nothing but other boxes."""
    category = BoxCategory.CONTAINER
    _full_box = False

    def __str__(self):
        return self._str_superbox()

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        if cls._full_box:
            box.version, box.flags = _read_version_flags(cursor)
        return box


class FileTypeBox(HeifBox):
    """Container for the file type box.

    Attributes
    ----------
    major_brand : bytes
        Specification of the file format.
    minor_version : int
        Minor version of the major brand.
    compatibility_list : list
        Brands the file also conforms to.
    """
    box_id = b'ftyp'
    longname = 'File Type'

    def __init__(self, major_brand=b'heic', minor_version=0,
                 compatibility_list=None, offset=0, length=0):
        super().__init__(offset=offset, length=length)
        self.major_brand = major_brand
        self.minor_version = minor_version
        self.compatibility_list = compatibility_list or []

    def __str__(self):
        msg = HeifBox.__str__(self)
        msg += f'\n    Brand:  {self.major_brand.decode("latin-1")}'
        msg += f'\n    Compatibility:  {self.compatibility_list}'
        return msg

    @property
    def is_heif(self):
        brands = {self.major_brand, *self.compatibility_list}
        return len(brands & HEIF_BRANDS) > 0

    @classmethod
    def parse(cls, cursor, offset, length):
        major_brand = cursor.read_fourcc()
        minor_version = cursor.read_u32()
        compatibility_list = [
            cursor.read_fourcc() for _ in range(cursor.remaining() // 4)
        ]
        return cls(major_brand, minor_version, compatibility_list,
                   offset=offset, length=length)


class MetaBox(_ContainerBox):
    box_id = b'meta'
    longname = 'Meta'
    _full_box = True


class ItemPropertiesBox(_ContainerBox):
    box_id = b'iprp'
    longname = 'Item Properties'


class ItemPropertyContainerBox(_ContainerBox):
    box_id = b'ipco'
    longname = 'Item Property Container'


class DataInformationBox(_ContainerBox):
    box_id = b'dinf'
    longname = 'Data Information'


class ItemInformationBox(_ContainerBox):
    """Container for the item information entries.

    Attributes
    ----------
    entry_count : int
        Number of item information entries declared.
    """
    box_id = b'iinf'
    longname = 'Item Information'

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.version, box.flags = _read_version_flags(cursor)
        if box.version == 0:
            box.entry_count = cursor.read_u16()
        else:
            box.entry_count = cursor.read_u32()
        return box


class ItemInfoEntryBox(HeifBox):
    """Describes one item.

    Attributes
    ----------
    item_id : int
        Identifier of the item.
    protection_index : int
        0 if the item is not protected.
    item_type : bytes or None
        4-character item type, e.g. b'Exif'.  Versions 0 and 1 of the box do
        not carry one.
    item_name : str
        Symbolic name of the item.
    content_type : str or None
        MIME type of a 'mime' item.
    content_encoding : str or None
        Content encoding of a 'mime' item.
    item_uri_type : str or None
        URI of a 'uri ' item.
    """
    box_id = b'infe'
    longname = 'Item Information Entry'

    def __init__(self, item_id=0, protection_index=0, item_type=None,
                 item_name='', offset=0, length=0):
        super().__init__(offset=offset, length=length)
        self.item_id = item_id
        self.protection_index = protection_index
        self.item_type = item_type
        self.item_name = item_name
        self.content_type = None
        self.content_encoding = None
        self.item_uri_type = None

    def __str__(self):
        msg = HeifBox.__str__(self)
        msg += f'\n    Item ID:  {self.item_id}'
        if self.item_type is not None:
            msg += f'\n    Item Type:  {self.item_type.decode("latin-1")}'
        if self.content_type is not None:
            msg += f'\n    Content Type:  {self.content_type}'
        return msg

    @classmethod
    def parse(cls, cursor, offset, length):
        version, flags = _read_version_flags(cursor)
        if version < 2:
            item_id = cursor.read_u16()
            protection_index = cursor.read_u16()
            box = cls(item_id, protection_index, None, _read_cstring(cursor),
                      offset=offset, length=length)
            box.content_type = _read_cstring(cursor)
            if cursor.remaining() > 0:
                box.content_encoding = _read_cstring(cursor)
        else:
            item_id = cursor.read_u16() if version == 2 else cursor.read_u32()
            protection_index = cursor.read_u16()
            item_type = cursor.read_fourcc()
            item_name = _read_cstring(cursor)
            box = cls(item_id, protection_index, item_type, item_name,
                      offset=offset, length=length)
            if item_type == b'mime':
                box.content_type = _read_cstring(cursor)
                if cursor.remaining() > 0:
                    box.content_encoding = _read_cstring(cursor)
            elif item_type == b'uri ':
                box.item_uri_type = _read_cstring(cursor)
        box.version, box.flags = version, flags
        return box


class ItemLocationBox(HeifBox):
    """Maps item identifiers to the byte ranges holding their data.

    Attributes
    ----------
    items : dict
        ItemLocation for each item identifier, in file order.
    """
    box_id = b'iloc'
    longname = 'Item Location'

    def __init__(self, items=None, offset=0, length=0):
        super().__init__(offset=offset, length=length)
        self.items = items if items is not None else {}

    def __str__(self):
        msg = HeifBox.__str__(self)
        for item in self.items.values():
            msg += f'\n    Item {item.item_id}:  {list(item.extents)}'
        return msg

    @classmethod
    def parse(cls, cursor, offset, length):
        version, flags = _read_version_flags(cursor)
        if version > 2:
            msg = f'Unsupported iloc box version ({version}).'
            raise StructuralError(msg)

        data = cursor.read_u8()
        offset_size, length_size = data >> 4, data & 0x0F
        data = cursor.read_u8()
        base_offset_size = data >> 4
        index_size = data & 0x0F if version in (1, 2) else 0

        sizes = (offset_size, length_size, base_offset_size, index_size)
        if any(size not in (0, 4, 8) for size in sizes):
            msg = f'Invalid iloc field sizes {sizes}, must be 0, 4, or 8.'
            raise StructuralError(msg)

        item_count = cursor.read_u16() if version < 2 else cursor.read_u32()

        items = {}
        for _ in range(item_count):
            item_id = cursor.read_u16() if version < 2 else cursor.read_u32()
            if version in (1, 2):
                construction_method = cursor.read_u16() & 0x0F
            else:
                construction_method = 0
            data_reference_index = cursor.read_u16()
            base_offset = cursor.read_uint(base_offset_size)
            extent_count = cursor.read_u16()
            extents = []
            for _ in range(extent_count):
                # the extent index is not used for anything here
                cursor.read_uint(index_size)
                extent_offset = cursor.read_uint(offset_size)
                extent_length = cursor.read_uint(length_size)
                extents.append(Extent(extent_offset, extent_length))
            items[item_id] = ItemLocation(
                item_id, construction_method, data_reference_index,
                base_offset, tuple(extents)
            )

        box = cls(items, offset=offset, length=length)
        box.version, box.flags = version, flags
        return box


class ItemReferenceBox(HeifBox):
    """Typed references between items, e.g. 'cdsc' from metadata to image.

    Attributes
    ----------
    references : list
        ItemReference tuples in file order.
    """
    box_id = b'iref'
    longname = 'Item Reference'

    def __init__(self, references=None, offset=0, length=0):
        super().__init__(offset=offset, length=length)
        self.references = references if references is not None else []

    @classmethod
    def parse(cls, cursor, offset, length):
        version, flags = _read_version_flags(cursor)
        read_id = cursor.read_u16 if version == 0 else cursor.read_u32

        references = []
        while cursor.remaining() >= 8:
            start = cursor.tell()
            size = cursor.read_u32()
            reference_type = cursor.read_fourcc()
            if size < 8 or start + size > start + 8 + cursor.remaining():
                msg = f'Invalid {reference_type} reference box size ({size}).'
                raise StructuralError(msg)
            from_item_id = read_id()
            count = cursor.read_u16()
            to_item_ids = tuple(read_id() for _ in range(count))
            references.append(
                ItemReference(reference_type, from_item_id, to_item_ids)
            )
            cursor.seek(start + size)

        box = cls(references, offset=offset, length=length)
        box.version, box.flags = version, flags
        return box


class HandlerBox(HeifBox):
    """
    Attributes
    ----------
    handler_type : bytes
        b'pict' for image items.
    name : str
        Human-readable name of the handler.
    """
    box_id = b'hdlr'
    longname = 'Handler'

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.version, box.flags = _read_version_flags(cursor)
        cursor.read_u32()  # pre_defined
        box.handler_type = cursor.read_fourcc()
        cursor.skip(12)  # reserved
        box.name = _read_cstring(cursor)
        return box


class PrimaryItemBox(HeifBox):
    box_id = b'pitm'
    longname = 'Primary Item'

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.version, box.flags = _read_version_flags(cursor)
        if box.version == 0:
            box.item_id = cursor.read_u16()
        else:
            box.item_id = cursor.read_u32()
        return box


class ItemPropertyAssociationBox(HeifBox):
    """
    Attributes
    ----------
    associations : dict
        Maps item identifier to a list of (essential, property_index) pairs.
        Property indices are 1-based into the ipco box.
    """
    box_id = b'ipma'
    longname = 'Item Property Association'

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.version, box.flags = _read_version_flags(cursor)
        box.associations = {}
        entry_count = cursor.read_u32()
        for _ in range(entry_count):
            if box.version < 1:
                item_id = cursor.read_u16()
            else:
                item_id = cursor.read_u32()
            association_count = cursor.read_u8()
            associations = []
            for _ in range(association_count):
                if box.flags & 1:
                    value = cursor.read_u16()
                    associations.append((bool(value & 0x8000), value & 0x7FFF))
                else:
                    value = cursor.read_u8()
                    associations.append((bool(value & 0x80), value & 0x7F))
            box.associations[item_id] = associations
        return box


class ImageSpatialExtentsBox(HeifBox):
    box_id = b'ispe'
    longname = 'Image Spatial Extents'

    def __str__(self):
        msg = HeifBox.__str__(self)
        msg += f'\n    Size:  {self.width} x {self.height}'
        return msg

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.version, box.flags = _read_version_flags(cursor)
        box.width = cursor.read_u32()
        box.height = cursor.read_u32()
        return box


class ImageRotationBox(HeifBox):
    """
    Attributes
    ----------
    angle : int
        Anti-clockwise rotation in degrees, a multiple of 90.
    """
    box_id = b'irot'
    longname = 'Image Rotation'

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.angle = (cursor.read_u8() & 0x03) * 90
        return box


class ColourInformationBox(HeifBox):
    """
    Attributes
    ----------
    colour_type : bytes
        b'nclx', b'rICC', or b'prof'.
    """
    box_id = b'colr'
    longname = 'Colour Information'

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.colour_type = cursor.read_fourcc()
        if box.colour_type == b'nclx':
            box.colour_primaries = cursor.read_u16()
            box.transfer_characteristics = cursor.read_u16()
            box.matrix_coefficients = cursor.read_u16()
            box.full_range = bool(cursor.read_u8() & 0x80)
        else:
            # ICC profile, kept by reference only
            box.icc_profile_length = cursor.remaining()
        return box


class ItemDataBox(HeifBox):
    """Item data stored inside the meta box (construction method 1)."""
    box_id = b'idat'
    longname = 'Item Data'


class MediaDataBox(HeifBox):
    """Media data.  The contents are never read."""
    box_id = b'mdat'
    longname = 'Media Data'


class FreeBox(HeifBox):
    box_id = b'free'
    longname = 'Free'


class SkipBox(HeifBox):
    box_id = b'skip'
    longname = 'Skip'


class UUIDBox(HeifBox):
    """
    Attributes
    ----------
    uuid : UUID
        Extended type of the box.
    """
    box_id = b'uuid'
    longname = 'UUID'
    category = BoxCategory.UNKNOWN

    def __str__(self):
        return HeifBox.__str__(self) + f'\n    UUID:  {self.uuid}'

    @classmethod
    def parse(cls, cursor, offset, length):
        box = cls(offset=offset, length=length)
        box.uuid = UUID(bytes=cursor.read_bytes(16))
        return box


# Map each box ID to the corresponding class.
_BOX_WITH_ID = {
    b'colr': ColourInformationBox,
    b'dinf': DataInformationBox,
    b'free': FreeBox,
    b'ftyp': FileTypeBox,
    b'hdlr': HandlerBox,
    b'idat': ItemDataBox,
    b'iinf': ItemInformationBox,
    b'iloc': ItemLocationBox,
    b'infe': ItemInfoEntryBox,
    b'ipco': ItemPropertyContainerBox,
    b'ipma': ItemPropertyAssociationBox,
    b'iprp': ItemPropertiesBox,
    b'iref': ItemReferenceBox,
    b'irot': ImageRotationBox,
    b'ispe': ImageSpatialExtentsBox,
    b'mdat': MediaDataBox,
    b'meta': MetaBox,
    b'pitm': PrimaryItemBox,
    b'skip': SkipBox,
    b'uuid': UUIDBox,
}

# Boxes the item lookup cannot do without.  A failure to decode any other box
# only loses that box.
_REQUIRED_BOXES = frozenset((b'ftyp', b'meta', b'iinf', b'infe', b'iloc'))


class HeifReader(object):
    """Read the box tree of a HEIF file and resolve its items.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
    max_depth : int, optional
        Deepest box nesting that will be descended into.
    """

    def __init__(self, buffer, strict=False, max_depth=32):
        self._view = memoryview(buffer).cast('B')
        self.cursor = ByteCursor(self._view, BIG_ENDIAN)
        self.strict = strict
        self.max_depth = max_depth
        self.box = []

    def __str__(self):
        return '\n'.join(str(box) for box in self.box)

    def read(self):
        """Parse the top-level boxes and everything below them.

        Returns
        -------
        list
            The top-level boxes.
        """
        if len(self.cursor) < 8 or self.cursor.peek(4, 4) != b'ftyp':
            msg = 'The first box of a HEIF file must be a file type box.'
            raise NotThisFormatError(msg)

        self.box = self.parse_superbox(0, len(self.cursor), 0)

        ftyp = self.box[0]
        if not ftyp.is_heif:
            msg = (
                f'The major brand {ftyp.major_brand} and compatible brands '
                f'{ftyp.compatibility_list} are not HEIF brands.'
            )
            _dispatch_integrity(msg, self.strict)

        return self.box

    def parse_superbox(self, start, end, depth):
        """Parse the sequence of boxes between two file offsets.

        Parameters
        ----------
        start, end : int
            File offsets delimiting the enclosing payload.
        depth : int
            Nesting level of the boxes being parsed.

        Returns
        -------
        list
            Boxes in file order.
        """
        cursor = self.cursor
        superbox = []

        position = start
        while position < end:

            if end - position < 8:
                msg = (
                    f'{end - position} extra bytes at offset {position} '
                    f'ignored.'
                )
                _dispatch_integrity(msg, self.strict)
                break

            cursor.seek(position)
            box_length = cursor.read_u32()
            box_id = cursor.read_fourcc()
            header_size = 8

            if box_length == 0:
                # The box is presumed to last until the end of the enclosing
                # payload.
                num_bytes = end - position
            elif box_length == 1:
                # The length of the box is in the XL field, a 64-bit value.
                if end - position < 16:
                    msg = f'Truncated {box_id} box header at offset {position}.'
                    raise StructuralError(msg)
                num_bytes = cursor.read_u64()
                header_size = 16
            else:
                num_bytes = box_length

            if num_bytes < header_size:
                msg = (
                    f'The {box_id} box at offset {position} has a length '
                    f'({num_bytes}) smaller than its header.'
                )
                raise StructuralError(msg)
            if position + num_bytes > end:
                msg = (
                    f'The {box_id} box at offset {position} has a length '
                    f'({num_bytes}) reaching past the end of its enclosing '
                    f'box at offset {end}.'
                )
                raise StructuralError(msg)

            box = self._parse_this_box(
                box_id, position, num_bytes, header_size, depth
            )
            superbox.append(box)

            position += num_bytes

        return superbox

    def _parse_this_box(self, box_id, offset, length, header_size, depth):
        """Parse one box, descending into it if it is a container."""
        payload_start = offset + header_size
        payload_end = offset + length

        if box_id == b'mdat':
            logger.debug(f'Skipping mdat box at offset {offset}')
            box = MediaDataBox(offset=offset, length=length)
            box.header_size = header_size
            return box

        try:
            parser = _BOX_WITH_ID[box_id]
        except KeyError:
            # We don't recognize the box ID.
            logger.debug(f'Unrecognized box ({box_id}) at offset {offset}.')
            box = UnknownBox(box_id, offset=offset, length=length)
            box.header_size = header_size
            return box

        payload = ByteCursor(self._view[payload_start:payload_end], BIG_ENDIAN)
        try:
            box = parser.parse(payload, offset, length)
        except StructuralError as e:
            msg = f'Unable to parse the {box_id} box at offset {offset}:  {e}'
            if box_id in _REQUIRED_BOXES:
                raise StructuralError(msg) from e
            # Keep the byte range, drop the contents.
            _dispatch_integrity(msg, self.strict)
            box = UnknownBox(box_id, offset=offset, length=length)
            box.header_size = header_size
            return box
        box.header_size = header_size

        if box.category is BoxCategory.CONTAINER:
            if depth + 1 > self.max_depth:
                msg = (
                    f'The contents of the {box_id} box at offset {offset} are '
                    f'nested more than {self.max_depth} levels deep and are '
                    f'ignored.'
                )
                _dispatch_integrity(msg, self.strict)
            else:
                box.box = self.parse_superbox(
                    payload_start + payload.tell(), payload_end, depth + 1
                )

        return box

    def find(self, box_id):
        """Return the first box with the given ID, depth first, or None."""
        stack = list(reversed(self.box))
        while stack:
            box = stack.pop()
            if box.box_id == box_id:
                return box
            stack.extend(reversed(box.box))
        return None

    def _item_boxes(self):
        iinf = self.find(b'iinf')
        iloc = self.find(b'iloc')
        if iinf is None:
            raise StructuralError('The file has no item information box.')
        if iloc is None:
            raise StructuralError('The file has no item location box.')
        return iinf, iloc

    def find_item(self, predicate):
        """Return the first item information entry matching a predicate."""
        iinf, _ = self._item_boxes()
        for entry in iinf.box:
            if isinstance(entry, ItemInfoEntryBox) and predicate(entry):
                return entry
        return None

    def item_location(self, item_id):
        """Return the ItemLocation of an item.

        Raises
        ------
        StructuralError
            If the item location box has no entry for the item.
        """
        _, iloc = self._item_boxes()
        try:
            return iloc.items[item_id]
        except KeyError:
            msg = f'The item location box has no entry for item {item_id}.'
            raise StructuralError(msg) from None

    def _extent_base(self, location):
        """File offset that the extent offsets of an item are relative to."""
        if location.construction_method == 0:
            return 0, len(self.cursor)
        elif location.construction_method == 1:
            idat = self.find(b'idat')
            if idat is None:
                msg = (
                    f'Item {location.item_id} refers to an item data box, but '
                    f'there is none.'
                )
                raise StructuralError(msg)
            return idat.data_offset, idat.offset + idat.length
        return None, None

    def item_data(self, item_id, skip_header_offset=False):
        """Concatenate the extents of an item.

        Parameters
        ----------
        item_id : int
            Identifier of the item.
        skip_header_offset : bool, optional
            Treat the first 4 bytes of the first extent as the offset to the
            TIFF header of an Exif item.  The offset field and the bytes it
            skips are not part of the result.

        Returns
        -------
        bytes or None
            None if the data is stored in a way that cannot be read.
        """
        location = self.item_location(item_id)
        if len(location.extents) == 0:
            msg = f'Item {item_id} has no extents.'
            raise StructuralError(msg)

        start, limit = self._extent_base(location)
        if start is None:
            msg = (
                f'Item {item_id} uses construction method '
                f'{location.construction_method}, which is not supported.'
            )
            _dispatch_integrity(msg, self.strict)
            return None

        cursor = self.cursor
        data = bytearray()
        for j, extent in enumerate(location.extents):

            position = start + location.base_offset + extent.offset
            if position + extent.length > limit:
                msg = (
                    f'Extent {j} of item {item_id} ({extent.length} bytes at '
                    f'offset {position}) reaches past the end of its data.'
                )
                raise StructuralError(msg)

            cursor.mark()
            try:
                cursor.seek(position)
                if j == 0 and skip_header_offset:
                    if extent.length < 8:
                        msg = (
                            f'The first extent of item {item_id} is only '
                            f'{extent.length} bytes long, too short to hold '
                            f'a TIFF header offset.'
                        )
                        raise StructuralError(msg)
                    header_offset = cursor.read_u32()
                    if header_offset + 4 > extent.length:
                        msg = (
                            f'The TIFF header offset ({header_offset}) of '
                            f'item {item_id} lies outside of its first '
                            f'extent.'
                        )
                        raise StructuralError(msg)
                    cursor.skip(header_offset)
                    data += cursor.read_bytes(
                        extent.length - header_offset - 4
                    )
                else:
                    data += cursor.read_bytes(extent.length)
            finally:
                cursor.reset()

        return bytes(data)

    def exif_payload(self):
        """Return the TIFF stream of the Exif item, or None if there is none.

        Raises
        ------
        StructuralError
            If the item boxes are missing or the Exif item cannot be located.
        """
        entry = self.find_item(lambda x: x.item_type == b'Exif')
        if entry is None:
            logger.info('No Exif item found.')
            return None
        return self.item_data(entry.item_id, skip_header_offset=True)

    def xmp_packet(self):
        """Return the XMP packet stored as a 'mime' item, or None."""
        entry = self.find_item(
            lambda x: x.item_type == b'mime'
            and x.content_type == XMP_CONTENT_TYPE
        )
        if entry is None:
            return None
        return self.item_data(entry.item_id)


def parse(buffer, strict=None, max_depth=None):
    """Read the metadata of a HEIF file.

    Parameters
    ----------
    buffer : bytes-like
        Contents of the whole file.
    strict : bool, optional
        Raise StructuralError on integrity problems instead of warning.
        Defaults to the 'parse.strict' option.
    max_depth : int, optional
        Deepest box nesting and TIFF directory that will be followed.
        Defaults to the 'parse.max_depth' option.

    Returns
    -------
    Metadata
    """
    strict, max_depth = _resolve(strict, max_depth)

    reader = HeifReader(buffer, strict=strict, max_depth=max_depth)
    reader.read()

    metadata = Metadata(HEIF)

    exif = reader.exif_payload()
    if exif is not None:
        stream = read_tiff(exif, strict=strict, max_depth=max_depth)
        metadata._add_tiff(stream, strict=strict)

    try:
        packet = reader.xmp_packet()
    except StructuralError as e:
        msg = f'The XMP item could not be read:  {e}'
        _dispatch_integrity(msg, strict)
        packet = None
    if packet is not None:
        tree = parse_xmp(packet)
        if tree is not None:
            metadata._set_xmp(tree)

    return metadata._freeze()
