"""
Read picmeta defaults from a configuration file, if there is one.
"""
from configparser import ConfigParser
import os
import pathlib
import platform
import warnings


def picmetarc_fname():
    """Return the path to the configuration file.

    Search order:
        1) current working directory
        2) environ var XDG_CONFIG_HOME
        3) $HOME/.config/picmeta/picmetarc
    """

    # Current directory.
    path = pathlib.Path.cwd() / 'picmetarc'
    if path.exists():
        return path

    confdir_path = get_configdir()
    if confdir_path is not None:
        path = confdir_path / 'picmetarc'
        if path.exists():
            return path

    # didn't find a configuration file.
    return None


def read_parse_options(filename=None):
    """
    Extract parsing defaults from a configuration file.

    The file may carry a [parse] section such as

        [parse]
        strict = yes
        max_depth = 16

    Parameters
    ----------
    filename : path, optional
        Configuration file to read.  If not given, the usual locations are
        searched.

    Returns
    -------
    dict
        Option keys mapped to their configured values.  Empty if there is no
        configuration file or no [parse] section.
    """
    if filename is None:
        filename = picmetarc_fname()
    if filename is None:
        return {}

    parser = ConfigParser()
    parser.read(filename)
    if not parser.has_section('parse'):
        return {}

    options = {}
    try:
        if parser.has_option('parse', 'strict'):
            options['parse.strict'] = parser.getboolean('parse', 'strict')
        if parser.has_option('parse', 'max_depth'):
            max_depth = parser.getint('parse', 'max_depth')
            if max_depth < 1:
                raise ValueError(f'max_depth must be positive, not {max_depth}')
            options['parse.max_depth'] = max_depth
    except ValueError as e:
        msg = f'Ignoring the [parse] section of {filename}:  {e}'
        warnings.warn(msg, UserWarning)
        return {}

    return options


def get_configdir():
    """Return string representing the configuration directory.

    Default is $HOME/.config/picmeta.  You can override this with the
    XDG_CONFIG_HOME environment variable.
    """
    if 'XDG_CONFIG_HOME' in os.environ:
        return pathlib.Path(os.environ['XDG_CONFIG_HOME']) / 'picmeta'

    if 'HOME' in os.environ and platform.system() != 'Windows':
        # HOME is set by WinPython to something unusual, so we don't
        # necessarily want that.
        return pathlib.Path(os.environ['HOME']) / '.config' / 'picmeta'

    # Last stand.  Should handle windows... others?
    return pathlib.Path.home() / 'picmeta'
