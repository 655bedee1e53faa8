"""
Manage picmeta configuration settings.
"""
# Standard library imports
import copy

# Local imports
from . import config


_original_options = {
    'parse.strict': False,
    'parse.max_depth': 32,
    'print.short': False,
}
_original_options.update(config.read_parse_options())
_options = copy.deepcopy(_original_options)


def set_option(key, value):
    """Set the value of the specified option.

    Available options:

        parse.strict
        parse.max_depth
        print.short

    Parameters
    ----------
    key : str
        Name of a single option.
    value :
        New value of option.

    Option Descriptions
    -------------------
    parse.strict : bool
        When True, integrity problems such as CRC mismatches, unknown TIFF
        tags, or cyclic directory pointers abort the parse with a
        StructuralError instead of issuing an IntegrityWarning.
        [default: False]
    parse.max_depth : int
        Maximum nesting depth followed when walking TIFF directories or HEIF
        boxes.  IFD0 and the top-level boxes are at depth 0, and anything
        at a depth greater than this is not read.  [default: 32]
    print.short : bool
        When True, only the directory names and entry counts are displayed
        when printing metadata.  [default: False]

    See also
    --------
    get_option
    """
    if key not in _options.keys():
        raise KeyError('{key} not valid.'.format(key=key))

    if key == 'parse.max_depth':
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            msg = f'parse.max_depth must be a positive integer, not {value!r}.'
            raise ValueError(msg)

    _options[key] = value


def get_option(key):
    """Return the value of the specified option

    Available options:

        parse.strict
        parse.max_depth
        print.short

    Parameter
    ---------
    key : str
        Name of a single option.

    Returns
    -------
    result : the value of the option.

    See also
    --------
    set_option
    """
    return _options[key]


def reset_option(key):
    """
    Reset one or more options to their default value.

    Pass "all" as argument to reset all options.

    Parameter
    ---------
    key : str
        Name of a single option.
    """
    global _options
    if key == 'all':
        _options = copy.deepcopy(_original_options)
    else:
        if key not in _options.keys():
            raise KeyError('{key} not valid.'.format(key=key))
        _options[key] = _original_options[key]


def _resolve(strict, max_depth):
    """Fill in parse policy not given explicitly by the caller."""
    if strict is None:
        strict = get_option('parse.strict')
    if max_depth is None:
        max_depth = get_option('parse.max_depth')
    return bool(strict), max_depth
