"""
This file is part of picmeta, a Python package for reading image metadata.
"""

# Standard library imports ...
import sys

# Third party library imports ...
from packaging.version import parse
import lxml.etree
import numpy as np

# Do not change the format of this next line!  Doing so risks breaking
# setup.py
version = "0.3.0"

version_tuple = parse(version).release

lxml_version = '.'.join(str(x) for x in lxml.etree.LXML_VERSION)

__doc__ = f"""\
This is picmeta **{version}**
"""

info = f"""\
Summary of picmeta configuration
--------------------------------

picmeta       {version}
lxml          {lxml_version}
Python        {sys.version}
sys.platform  {sys.platform}
sys.maxsize   {sys.maxsize}
numpy         {np.__version__}
"""
