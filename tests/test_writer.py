"""Tests for the layout planner and writer."""

import logging
import struct

import pytest

from diwentiff.models import Field, Page
from diwentiff.tiff.parser import iter_ifds, parse_tiff, read_header
from diwentiff.tiff.tags import (
    EXIF_IFD,
    IMAGE_LENGTH,
    IMAGE_WIDTH,
    SOFTWARE,
    STRIP_BYTE_COUNTS,
    STRIP_OFFSETS,
    SUB_IFDS,
)
from diwentiff.tiff.types import FieldType
from diwentiff.tiff.writer import plan_layout, write_tiff
from tests.conftest import STRIP, build_tiff_with_strips, gray_page_entries


def _entries(data, ifd_offset, endian='<'):
    """Raw (tag, type, count, slot) tuples of the IFD at ``ifd_offset``."""
    n = struct.unpack_from(endian + 'H', data, ifd_offset)[0]
    result = []
    for i in range(n):
        pos = ifd_offset + 2 + 12 * i
        tag, ftype, count = struct.unpack_from(endian + 'HHI', data, pos)
        result.append((tag, ftype, count, data[pos + 8:pos + 12]))
    return result


def _strip_page(strips):
    page = Page([
        Field(IMAGE_WIDTH, FieldType.SHORT, [4]),
        Field(STRIP_OFFSETS, FieldType.LONG, [0] * len(strips)),
        Field(STRIP_BYTE_COUNTS, FieldType.SHORT, [len(s) for s in strips]),
    ])
    page.image_data[STRIP_OFFSETS] = list(strips)
    return page


class TestHeader:
    def test_empty_document(self):
        assert write_tiff([], '<') == b'II\x2a\x00\x00\x00\x00\x00'
        assert write_tiff([], '>') == b'MM\x00\x2a\x00\x00\x00\x00'

    def test_first_ifd_follows_header(self):
        data = write_tiff([Page([Field(IMAGE_WIDTH, FieldType.SHORT, [1])])], '<')
        assert struct.unpack_from('<I', data, 4)[0] == 8


class TestLayout:
    def test_exact_layout(self):
        page = Page([
            Field(SOFTWARE, FieldType.ASCII, ['Diwen.Tiff']),
            Field(IMAGE_WIDTH, FieldType.SHORT, [4]),
        ])
        data = write_tiff([page], '<')
        # header 8 + IFD 30 + ASCII 11
        assert len(data) == 49
        entries = _entries(data, 8)
        assert entries[0] == (IMAGE_WIDTH, 3, 1, b'\x04\x00\x00\x00')
        assert entries[1][:3] == (SOFTWARE, 2, 11)
        assert struct.unpack('<I', entries[1][3])[0] == 38
        assert data[38:49] == b'Diwen.Tiff\x00'
        assert struct.unpack_from('<I', data, 8 + 2 + 24)[0] == 0

    def test_entries_sorted_by_tag(self):
        page = Page([
            Field(SOFTWARE, FieldType.ASCII, ['x']),
            Field(IMAGE_LENGTH, FieldType.SHORT, [2]),
            Field(IMAGE_WIDTH, FieldType.SHORT, [4]),
        ])
        data = write_tiff([page], '<')
        assert [e[0] for e in _entries(data, 8)] == [IMAGE_WIDTH, IMAGE_LENGTH, SOFTWARE]
        # In-memory order untouched
        assert page.tags() == [SOFTWARE, IMAGE_LENGTH, IMAGE_WIDTH]

    def test_duplicate_tags_keep_relative_order(self):
        page = Page([
            Field(SOFTWARE, FieldType.ASCII, ['b']),
            Field(IMAGE_WIDTH, FieldType.SHORT, [4]),
            Field(SOFTWARE, FieldType.ASCII, ['a']),
        ])
        _, pages = parse_tiff(write_tiff([page], '<'))
        assert [f.value for f in pages[0] if f.tag == SOFTWARE] == ['b', 'a']

    def test_inline_boundary(self):
        page = Page([
            Field(300, FieldType.BYTE, [1, 2, 3, 4]),
            Field(301, FieldType.BYTE, [1, 2, 3, 4, 5]),
        ])
        data = write_tiff([page], '<')
        four, five = _entries(data, 8)
        assert four[3] == b'\x01\x02\x03\x04'
        offset = struct.unpack('<I', five[3])[0]
        assert data[offset:offset + 5] == b'\x01\x02\x03\x04\x05'

    def test_short_inline_padded(self):
        page = Page([Field(IMAGE_WIDTH, FieldType.SHORT, [4])])
        data = write_tiff([page], '>')
        assert _entries(data, 8, '>')[0][3] == b'\x00\x04\x00\x00'

    def test_regions_word_aligned(self):
        page = Page([
            Field(SOFTWARE, FieldType.ASCII, ['odd']),   # 4 bytes inline
            Field(270, FieldType.ASCII, ['odd size']),    # 9 bytes
            Field(315, FieldType.ASCII, ['artist']),      # 7 bytes
        ])
        layout = plan_layout([page, Page([Field(IMAGE_WIDTH, FieldType.SHORT, [1])])], '<')
        out_of_line = [e.offset for e in layout.pages[0].entries if not e.inline]
        assert out_of_line and all(o % 2 == 0 for o in out_of_line)
        assert layout.pages[1].ifd_offset % 2 == 0

    def test_chain_links(self):
        pages = [Page([Field(IMAGE_WIDTH, FieldType.SHORT, [i])]) for i in range(3)]
        layout = plan_layout(pages, '<')
        offsets = [p.ifd_offset for p in layout.pages]
        assert [p.next_offset for p in layout.pages] == offsets[1:] + [0]
        data = write_tiff(pages, '<')
        walked = iter_ifds(data, read_header(data))
        assert [offset for offset, _ in walked] == offsets

    def test_planned_size_matches_output(self):
        data = build_tiff_with_strips(gray_page_entries(), [b'\x01' * 3, b'\x02' * 5])
        _, pages = parse_tiff(data)
        layout = plan_layout(pages, '<')
        assert len(write_tiff(pages, '<')) == layout.size


class TestImageData:
    def test_strip_offsets_rewritten(self):
        page = _strip_page([b'\x01' * 3, b'\x02' * 4])
        data = write_tiff([page], '<')
        _, pages = parse_tiff(data)
        loaded = pages[0]
        assert loaded.image_data[STRIP_OFFSETS] == [b'\x01' * 3, b'\x02' * 4]
        offsets = loaded.get(STRIP_OFFSETS).values
        assert data[offsets[0]:offsets[0] + 3] == b'\x01' * 3
        assert data[offsets[1]:offsets[1] + 4] == b'\x02' * 4
        assert loaded.get(STRIP_OFFSETS).type is FieldType.LONG

    def test_byte_counts_follow_chunks(self):
        page = _strip_page([STRIP])
        page.image_data[STRIP_OFFSETS] = [STRIP, STRIP + STRIP]
        _, pages = parse_tiff(write_tiff([page], '<'))
        assert pages[0].get(STRIP_BYTE_COUNTS).values == [8, 16]
        assert pages[0].get(STRIP_BYTE_COUNTS).type is FieldType.SHORT

    def test_byte_counts_promoted_to_long(self):
        big = b'\x00' * 70000
        page = _strip_page([STRIP])
        assert page.get(STRIP_BYTE_COUNTS).type is FieldType.SHORT
        page.image_data[STRIP_OFFSETS] = [big]
        _, pages = parse_tiff(write_tiff([page], '<'))
        assert pages[0].get(STRIP_BYTE_COUNTS).type is FieldType.LONG
        assert pages[0].image_data[STRIP_OFFSETS] == [big]

    def test_orphan_image_data_dropped(self, caplog):
        page = Page([Field(IMAGE_WIDTH, FieldType.SHORT, [4])])
        page.image_data[STRIP_OFFSETS] = [STRIP]
        with caplog.at_level(logging.WARNING, logger='diwentiff.tiff.writer'):
            data = write_tiff([page], '<')
        assert STRIP not in data
        assert 'dropped' in caplog.text

    def test_chunks_follow_values(self):
        page = _strip_page([STRIP])
        page.append(Field(SOFTWARE, FieldType.ASCII, ['Diwen.Tiff']))
        layout = plan_layout([page], '<')
        plan = layout.pages[0]
        value_end = max(e.offset + e.size for e in plan.entries if not e.inline)
        assert plan.chunks[0][0] >= value_end


class TestSubIFDs:
    def test_exif_sub_page_written(self):
        exif = Page([Field(36867, FieldType.ASCII, ['2024:01:01 00:00:00'])])
        page = Page([
            Field(IMAGE_WIDTH, FieldType.SHORT, [4]),
            Field(EXIF_IFD, FieldType.LONG, [0], sub_pages=[exif]),
        ])
        data = write_tiff([page], '<')
        _, pages = parse_tiff(data)
        pointer = pages[0].get(EXIF_IFD)
        assert pointer.type is FieldType.LONG
        assert pointer.sub_pages[0].get(36867).value == '2024:01:01 00:00:00'
        assert pointer.value > 8

    def test_sub_ifds_keep_ifd_type(self):
        subs = [Page([Field(IMAGE_WIDTH, FieldType.SHORT, [w])]) for w in (2, 1)]
        page = Page([Field(SUB_IFDS, FieldType.IFD, [0, 0], sub_pages=subs)])
        _, pages = parse_tiff(write_tiff([page], '>'))
        pointer = pages[0].get(SUB_IFDS)
        assert pointer.type is FieldType.IFD
        assert [p.get(IMAGE_WIDTH).value for p in pointer.sub_pages] == [2, 1]

    def test_sub_page_placed_before_next_page(self):
        exif = Page([Field(36867, FieldType.ASCII, ['now'])])
        first = Page([Field(EXIF_IFD, FieldType.LONG, [0], sub_pages=[exif])])
        second = Page([Field(IMAGE_WIDTH, FieldType.SHORT, [1])])
        layout = plan_layout([first, second], '<')
        assert layout.pages[0].sub_plans[0].ifd_offset < layout.pages[1].ifd_offset


class TestOpaqueFields:
    def test_written_verbatim(self):
        page = Page([Field.opaque(65000, 99, 7, b'\xaa\xbb\xcc\xdd', '<')])
        data = write_tiff([page], '>')
        assert _entries(data, 8, '>')[0] == (65000, 99, 7, b'\xaa\xbb\xcc\xdd')

    def test_out_of_line_value_lost_is_logged(self, caplog):
        page = Page([Field.opaque(65000, 99, 7, b'\x00\x01\x00\x00', '<')])
        with caplog.at_level(logging.WARNING, logger='diwentiff.tiff.writer'):
            write_tiff([page], '<')
        assert 'Tag_65000 (65000) has unknown type 99 and count 7' in caplog.text

    def test_inline_value_not_logged(self, caplog):
        page = Page([Field.opaque(65000, 99, 4, b'\x01\x02\x03\x04', '<')])
        with caplog.at_level(logging.WARNING, logger='diwentiff.tiff.writer'):
            write_tiff([page], '<')
        assert 'unknown type' not in caplog.text


@pytest.mark.parametrize('endian', ['<', '>'])
def test_resave_is_byte_identical(endian):
    source = build_tiff_with_strips(gray_page_entries(), [b'\x01' * 3, b'\x02' * 5],
                                    endian=endian)
    _, pages = parse_tiff(source)
    first = write_tiff(pages, endian)
    _, reloaded = parse_tiff(first)
    assert write_tiff(reloaded, endian) == first
