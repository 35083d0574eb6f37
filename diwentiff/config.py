"""Codec configuration -- limits and policies applied while loading."""

import json
from dataclasses import dataclass, fields

# Upper bound on IFDs in one chain.  Multi-page faxes and pyramids stay far
# below this; a larger chain means the next-IFD pointers are garbage.
DEFAULT_MAX_PAGES = 10000

# Maximum plausible entry count per IFD.  Anything beyond it indicates the
# IFD pointer landed in image data and the count is garbage bytes.
DEFAULT_MAX_IFD_ENTRIES = 4096


@dataclass
class CodecConfig:
    """Settings for Tif.load.

    ``strict_types`` turns an unrecognized field type into a load failure
    instead of keeping it as an opaque field.  ``load_image_data`` controls
    whether strip/tile payloads are read into each Page.
    """

    max_pages: int = DEFAULT_MAX_PAGES
    max_ifd_entries: int = DEFAULT_MAX_IFD_ENTRIES
    strict_types: bool = False
    load_image_data: bool = True

    @classmethod
    def default(cls) -> 'CodecConfig':
        return cls()

    @classmethod
    def from_json(cls, path) -> 'CodecConfig':
        """Load settings from a JSON file, merged over the defaults.

        JSON format::

            {
              "max_pages": 500,
              "max_ifd_entries": 1000,
              "strict_types": true,
              "load_image_data": false
            }

        All keys are optional.  Unknown keys raise ValueError.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'CodecConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f'Unknown config keys: {", ".join(unknown)}')
        config = cls.default()
        for key, value in data.items():
            setattr(config, key, value)
        return config
