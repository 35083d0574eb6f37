"""Shared test fixtures — synthetic TIFF file generators."""

import struct
import pytest


def _slot(endian, type_id, value):
    """Left-align an inline value in its 4-byte entry slot."""
    if isinstance(value, bytes):
        return value.ljust(4, b'\x00')
    if type_id in (3, 8):  # SHORT / SSHORT
        return struct.pack(endian + 'H', value) + b'\x00\x00'
    if type_id in (1, 6):  # BYTE / SBYTE
        return struct.pack(endian + 'B', value) + b'\x00' * 3
    return struct.pack(endian + 'I', value)


def _is_out_of_line(value):
    return isinstance(value, bytes) and len(value) > 4


def build_tiff(entries, endian='<', extra_data=None):
    """Build a minimal TIFF file in memory with given IFD entries.

    Args:
        entries: List of (tag_id, type_id, count, value_or_bytes) tuples.
            For inline values, pass an int (or up to 4 bytes).
            For out-of-line values, pass bytes longer than 4.
        endian: '<' for little-endian, '>' for big-endian.
        extra_data: Optional bytes to append after the IFD.

    Returns:
        bytes: Complete TIFF file content.
    """
    return build_tiff_multi_ifd([entries], endian=endian) + (extra_data or b'')


def build_tiff_multi_ifd(ifd_entries_list, endian='<'):
    """Build a TIFF with multiple linked IFDs.

    Args:
        ifd_entries_list: List of lists, each inner list contains
            (tag_id, type_id, count, value_or_bytes) tuples for one IFD.
        endian: '<' or '>'.

    Returns:
        bytes: Complete TIFF file with chained IFDs.
    """
    bo = b'II' if endian == '<' else b'MM'

    # Pre-compute out-of-line data sizes for layout calculation
    ool_sizes = []
    for entries in ifd_entries_list:
        ool_sizes.append(sum(len(v) for _, _, _, v in entries if _is_out_of_line(v)))

    # Compute start offset for each IFD
    ifd_starts = []
    offset = 8  # After header
    for i, entries in enumerate(ifd_entries_list):
        ifd_starts.append(offset)
        n = len(entries)
        offset += 2 + 12 * n + 4 + ool_sizes[i]

    result = bo + struct.pack(endian + 'H', 42)
    result += struct.pack(endian + 'I', ifd_starts[0] if ifd_starts else 0)

    for i, entries in enumerate(ifd_entries_list):
        n = len(entries)
        data_start = ifd_starts[i] + 2 + 12 * n + 4

        ifd_bytes = struct.pack(endian + 'H', n)
        data_bytes = b''

        for tag_id, type_id, count, value in entries:
            ifd_bytes += struct.pack(endian + 'HHI', tag_id, type_id, count)
            if _is_out_of_line(value):
                ifd_bytes += struct.pack(endian + 'I', data_start + len(data_bytes))
                data_bytes += value
            else:
                ifd_bytes += _slot(endian, type_id, value)

        if i + 1 < len(ifd_entries_list):
            next_ifd = ifd_starts[i + 1]
        else:
            next_ifd = 0
        ifd_bytes += struct.pack(endian + 'I', next_ifd)

        result += ifd_bytes + data_bytes

    return result


def build_tiff_with_strips(tag_entries, strips, endian='<'):
    """Build a TIFF with tag entries and image strip data.

    Automatically adds StripOffsets (273) and StripByteCounts (279) entries.
    All entries are written in ascending tag order, as a TIFF writer should.

    Args:
        tag_entries: List of (tag_id, type_id, count, value_or_bytes) tuples.
        strips: bytes of a single strip, or a list of strips.
        endian: '<' or '>'.
    """
    if isinstance(strips, bytes):
        strips = [strips]
    bo = b'II' if endian == '<' else b'MM'

    num_entries = len(tag_entries) + 2
    data_start = 8 + 2 + 12 * num_entries + 4
    ool_data_size = sum(len(v) for _, _, _, v in tag_entries if _is_out_of_line(v))
    # Offset/count arrays for more than one strip go out-of-line
    array_size = 4 * len(strips) if len(strips) > 1 else 0
    strip_start = data_start + ool_data_size + 2 * array_size

    strip_offsets = []
    cursor = strip_start
    for strip in strips:
        strip_offsets.append(cursor)
        cursor += len(strip)

    def _long_array(values):
        if len(values) == 1:
            return values[0]
        return struct.pack(endian + 'I' * len(values), *values)

    entries = list(tag_entries) + [
        (273, 4, len(strips), _long_array(strip_offsets)),
        (279, 4, len(strips), _long_array([len(s) for s in strips])),
    ]
    entries.sort(key=lambda e: e[0])

    entry_bytes = b''
    data_bytes = b''
    for tag_id, type_id, count, value in entries:
        entry_bytes += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if _is_out_of_line(value):
            entry_bytes += struct.pack(endian + 'I', data_start + len(data_bytes))
            data_bytes += value
        else:
            entry_bytes += _slot(endian, type_id, value)

    header = bo + struct.pack(endian + 'H', 42) + struct.pack(endian + 'I', 8)
    ifd = struct.pack(endian + 'H', num_entries) + entry_bytes + struct.pack(endian + 'I', 0)
    return header + ifd + data_bytes + b''.join(strips)


# ---------------------------------------------------------------------------
# Common page content
# ---------------------------------------------------------------------------

STRIP = bytes(range(0, 128, 16))  # 4x2 pixels, 8-bit gray


def gray_page_entries(width=4, height=2, software=b'Diwen.Tiff\x00'):
    """Baseline grayscale tags for an uncompressed 8-bit image."""
    return [
        (256, 3, 1, width),                 # ImageWidth
        (257, 3, 1, height),                # ImageLength
        (258, 3, 1, 8),                     # BitsPerSample
        (259, 3, 1, 1),                     # Compression = none
        (262, 3, 1, 1),                     # PhotometricInterpretation
        (277, 3, 1, 1),                     # SamplesPerPixel
        (278, 3, 1, height),                # RowsPerStrip
        (305, 2, len(software), software),  # Software
    ]


def field_tuples(page, skip=(273, 324, 513)):
    """(tag, type, count, values) for every field, minus offset-valued tags."""
    return [(f.tag, f.type, f.count, f.values) for f in page if f.tag not in skip]


@pytest.fixture
def gray_tiff_bytes():
    """A single-page 4x2 grayscale TIFF with one strip."""
    return build_tiff_with_strips(gray_page_entries(), STRIP)


@pytest.fixture
def tmp_tiff(tmp_path, gray_tiff_bytes):
    """The single-page grayscale TIFF written to disk."""
    filepath = tmp_path / 'gray.tif'
    filepath.write_bytes(gray_tiff_bytes)
    return filepath


@pytest.fixture
def three_page_bytes():
    """Three chained IFDs with distinct ImageWidth values."""
    return build_tiff_multi_ifd([
        [(256, 3, 1, 64 * (i + 1)), (257, 3, 1, 64)] for i in range(3)
    ])


@pytest.fixture
def tmp_multipage(tmp_path, three_page_bytes):
    filepath = tmp_path / 'multi.tif'
    filepath.write_bytes(three_page_bytes)
    return filepath
