"""TIFF tag catalog.

A flat lookup table from tag id to name. The codec never consults it to size
or encode values; it is used for display and for the handful of tags whose
values are file offsets that must be rewritten on save.
"""

from typing import Dict

NEW_SUBFILE_TYPE = 254
SUBFILE_TYPE = 255
IMAGE_WIDTH = 256
IMAGE_LENGTH = 257
BITS_PER_SAMPLE = 258
COMPRESSION = 259
PHOTOMETRIC = 262
IMAGE_DESCRIPTION = 270
STRIP_OFFSETS = 273
SAMPLES_PER_PIXEL = 277
ROWS_PER_STRIP = 278
STRIP_BYTE_COUNTS = 279
X_RESOLUTION = 282
Y_RESOLUTION = 283
RESOLUTION_UNIT = 296
PAGE_NUMBER = 297
SOFTWARE = 305
DATE_TIME = 306
ARTIST = 315
TILE_OFFSETS = 324
TILE_BYTE_COUNTS = 325
SUB_IFDS = 330
JPEG_IF_OFFSET = 513
JPEG_IF_BYTE_COUNT = 514
EXIF_IFD = 34665
GPS_IFD = 34853
INTEROPERABILITY_IFD = 40965

# Tags are stored as uint16
MAX_TAG = 0xFFFF

# Well-known TIFF tag names
TAG_NAMES: Dict[int, str] = {
    254: 'NewSubfileType', 255: 'SubfileType',
    256: 'ImageWidth', 257: 'ImageLength',
    258: 'BitsPerSample', 259: 'Compression', 262: 'PhotometricInterpretation',
    263: 'Threshholding', 264: 'CellWidth', 265: 'CellLength',
    266: 'FillOrder', 269: 'DocumentName',
    270: 'ImageDescription', 271: 'Make', 272: 'Model',
    273: 'StripOffsets', 274: 'Orientation', 277: 'SamplesPerPixel',
    278: 'RowsPerStrip', 279: 'StripByteCounts',
    280: 'MinSampleValue', 281: 'MaxSampleValue',
    282: 'XResolution', 283: 'YResolution', 284: 'PlanarConfiguration',
    285: 'PageName', 286: 'XPosition', 287: 'YPosition',
    288: 'FreeOffsets', 289: 'FreeByteCounts',
    290: 'GrayResponseUnit', 291: 'GrayResponseCurve',
    292: 'T4Options', 293: 'T6Options',
    296: 'ResolutionUnit', 297: 'PageNumber',
    301: 'TransferFunction', 305: 'Software', 306: 'DateTime',
    315: 'Artist', 316: 'HostComputer', 317: 'Predictor',
    318: 'WhitePoint', 319: 'PrimaryChromaticities', 320: 'ColorMap',
    321: 'HalftoneHints', 322: 'TileWidth', 323: 'TileLength',
    324: 'TileOffsets', 325: 'TileByteCounts',
    330: 'SubIFDs', 332: 'InkSet', 333: 'InkNames', 334: 'NumberOfInks',
    336: 'DotRange', 337: 'TargetPrinter', 338: 'ExtraSamples',
    339: 'SampleFormat', 340: 'SMinSampleValue', 341: 'SMaxSampleValue',
    342: 'TransferRange', 347: 'JPEGTables',
    512: 'JPEGProc', 513: 'JPEGInterchangeFormat',
    514: 'JPEGInterchangeFormatLength', 515: 'JPEGRestartInterval',
    517: 'JPEGLosslessPredictors', 518: 'JPEGPointTransforms',
    519: 'JPEGQTables', 520: 'JPEGDCTables', 521: 'JPEGACTables',
    529: 'YCbCrCoefficients', 530: 'YCbCrSubSampling',
    531: 'YCbCrPositioning', 532: 'ReferenceBlackWhite',
    700: 'XMP', 32781: 'ImageID', 33432: 'Copyright',
    33723: 'IPTC', 34377: 'Photoshop',
    34665: 'ExifIFD', 34675: 'ICCProfile', 34853: 'GPSIFD',
    37510: 'UserComment',
    36867: 'DateTimeOriginal', 36868: 'DateTimeDigitized',
    40965: 'InteroperabilityIFD', 42016: 'ImageUniqueID',
}

# {offsets tag: byte counts tag} for opaque image payloads
IMAGE_DATA_TAGS: Dict[int, int] = {
    STRIP_OFFSETS: STRIP_BYTE_COUNTS,
    TILE_OFFSETS: TILE_BYTE_COUNTS,
    JPEG_IF_OFFSET: JPEG_IF_BYTE_COUNT,
}

# Tags whose values are offsets of other IFDs
SUB_IFD_TAGS = frozenset({SUB_IFDS, EXIF_IFD, GPS_IFD, INTEROPERABILITY_IFD})


def tag_name(tag: int) -> str:
    return TAG_NAMES.get(tag, f'Tag_{tag}')


def name_to_tag(name: str):
    """Convert a tag name to a number.  Case doesn't matter.

    Returns None if the name is not in the catalog.
    """
    wanted = name.lower().replace('_', '').replace(' ', '')
    for tag, known in TAG_NAMES.items():
        if known.lower() == wanted:
            return tag
    return None
