from __future__ import annotations

from species_stream.streaming.reassembler import LineReassembler

STREAM = (
    '{"type":"init","message":"Starting"}\n'
    'data: {"type":"status","message":"Checking cache","cached_count":3}\n'
    "\n"
    '{"type":"new_item","data":{"scientific_name":"Thunnus thynnus"}}\n'
    '{"type":"complete","total_found":1}\n'
)


def _feed_all(chunks: list[str]) -> list[str]:
    reassembler = LineReassembler()
    lines: list[str] = []
    for chunk in chunks:
        lines.extend(reassembler.feed(chunk))
    return lines


def test_line_split_across_chunks_is_emitted_once_complete():
    reassembler = LineReassembler()

    assert reassembler.feed('{"type":"status",') == []
    assert reassembler.pending == '{"type":"status",'
    assert reassembler.feed('"message":"ok"}\n') == ['{"type":"status","message":"ok"}']
    assert reassembler.pending == ""


def test_any_two_way_split_matches_single_chunk():
    expected = _feed_all([STREAM])

    for cut in range(len(STREAM) + 1):
        assert _feed_all([STREAM[:cut], STREAM[cut:]]) == expected


def test_byte_sized_chunks_match_single_chunk():
    assert _feed_all(list(STREAM)) == _feed_all([STREAM])


def test_blank_lines_are_filtered():
    lines = _feed_all(["\n  \n", '{"type":"init"}\n', "\t\n"])

    assert lines == ['{"type":"init"}']


def test_trailing_fragment_waits_for_newline():
    reassembler = LineReassembler()

    assert reassembler.feed('{"type":"init"}\n{"type":"sta') == ['{"type":"init"}']
    assert reassembler.pending == '{"type":"sta'

    reassembler.clear()
    assert reassembler.pending == ""


def test_empty_chunk_is_a_no_op():
    reassembler = LineReassembler()
    reassembler.feed("partial")

    assert reassembler.feed("") == []
    assert reassembler.pending == "partial"
