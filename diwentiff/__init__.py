"""diwentiff -- read, edit and write multi-page TIFF files."""

__version__ = "1.0.0"

from diwentiff.exceptions import (
    ArgumentNullError,
    FieldTypeError,
    MalformedFieldError,
    MalformedFileError,
    NotATiffError,
    TiffError,
    UnsupportedTypeError,
)
from diwentiff.config import CodecConfig
from diwentiff.tiff.types import FieldType
from diwentiff.models import Field, Page
from diwentiff.document import Tif

__all__ = [
    "__version__",
    "Tif",
    "Page",
    "Field",
    "FieldType",
    "CodecConfig",
    "TiffError",
    "ArgumentNullError",
    "NotATiffError",
    "MalformedFileError",
    "MalformedFieldError",
    "UnsupportedTypeError",
    "FieldTypeError",
]
