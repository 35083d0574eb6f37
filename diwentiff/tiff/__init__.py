"""Low-level classic TIFF binary layer.

Re-exports the leaf modules.  The parser and writer depend on
``diwentiff.models`` and are imported from their own modules:
``diwentiff.tiff.parser`` and ``diwentiff.tiff.writer``.
"""

# --- types.py: field types and layout constants ---
from diwentiff.tiff.types import (  # noqa: F401
    TIFF_TYPES,
    FieldType,
    LITTLE_ENDIAN,
    BIG_ENDIAN,
    TIFF_MAGIC,
    HEADER_SIZE,
    ENTRY_SIZE,
    INLINE_SIZE,
    ifd_block_size,
)

# --- tags.py: tag catalog ---
from diwentiff.tiff.tags import (  # noqa: F401
    TAG_NAMES,
    IMAGE_DATA_TAGS,
    SUB_IFD_TAGS,
    tag_name,
    name_to_tag,
)

# --- codec.py: value encode/decode ---
from diwentiff.tiff.codec import (  # noqa: F401
    decode,
    encode,
    normalize,
    element_width,
    count_of,
    is_inline,
)
