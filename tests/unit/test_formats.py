from __future__ import annotations

import pytest

from subtrack.domain.cue import Cue
from subtrack.domain.track import Track
from subtrack.exceptions import SubtitleFormatError
from subtrack.services import formats


def _two_cues() -> Track:
    return Track((
        Cue.create("00:00:00.000", "00:00:01.500", "Hello"),
        Cue.create("00:00:01.500", "00:00:03.000", "two\nlines"),
    ))


def test_to_srt() -> None:
    assert formats.to_srt(_two_cues()) == (
        "1\n00:00:00,000 --> 00:00:01,500\nHello\n\n"
        "2\n00:00:01,500 --> 00:00:03,000\ntwo\nlines\n"
    )
    assert formats.to_srt(Track()) == ""


def test_to_vtt() -> None:
    assert formats.to_vtt(_two_cues()) == (
        "WEBVTT\n\n"
        "00:00:00.000 --> 00:00:01.500\nHello\n\n"
        "00:00:01.500 --> 00:00:03.000\ntwo\nlines\n"
    )


def test_srt_round_trip() -> None:
    track = _two_cues()
    assert formats.from_srt(formats.to_srt(track)) == track


def test_from_srt_tolerates_crlf_and_missing_numbers() -> None:
    text = "00:00:01,000 --> 00:00:02,000\r\nfirst\r\n\r\n\r\n2\r\n00:00:02,000 --> 00:00:03,000\r\nsecond\r\n"
    track = formats.from_srt(text)
    assert [cue.text for cue in track] == ["first", "second"]
    assert track[0].start == "00:00:01.000"


def test_from_vtt_skips_header_notes_and_settings() -> None:
    text = (
        "\ufeffWEBVTT - demo\n\n"
        "NOTE written by hand\n\n"
        "intro\n00:01.000 --> 00:02.500 align:start\nShort times\n\n"
        "00:00:03.000 --> 00:00:04.000\nLong times\n"
    )
    track = formats.from_vtt(text)
    assert [(cue.start, cue.end, cue.text) for cue in track] == [
        ("00:00:01.000", "00:00:02.500", "Short times"),
        ("00:00:03.000", "00:00:04.000", "Long times"),
    ]


def test_from_vtt_requires_header() -> None:
    with pytest.raises(SubtitleFormatError):
        formats.from_vtt("00:00:01.000 --> 00:00:02.000\nhi\n")


@pytest.mark.parametrize(
    "text",
    [
        "1\nno timing here\n",
        "1\n00:00:02,000 --> 00:00:01,000\nbackwards\n",
        "1\n00:00:xx,000 --> 00:00:01,000\nbad\n",
    ],
)
def test_from_srt_rejects_bad_blocks(text: str) -> None:
    with pytest.raises(SubtitleFormatError):
        formats.from_srt(text)


def test_detect_format() -> None:
    assert formats.detect_format("movie.SRT") == "srt"
    assert formats.detect_format("a/b.vtt") == "vtt"
    assert formats.detect_format("track.json") == "json"
    with pytest.raises(SubtitleFormatError):
        formats.detect_format("notes.txt")


@pytest.mark.parametrize(
    "render, parse",
    [(formats.to_srt, formats.from_srt), (formats.to_vtt, formats.from_vtt)],
)
def test_export_drops_blank_lines_inside_text(render, parse) -> None:  # noqa: ANN001
    track = Track((
        Cue.create("00:00:00.000", "00:00:02.000", "para one\n\npara two"),
        Cue.create("00:00:02.000", "00:00:03.000", "next"),
    ))

    parsed = parse(render(track))

    assert [cue.text for cue in parsed] == ["para one\npara two", "next"]
    assert [(cue.start, cue.end) for cue in parsed] == [(cue.start, cue.end) for cue in track]


def test_from_vtt_accepts_tab_before_settings() -> None:
    track = formats.from_vtt("WEBVTT\n\n00:00:01.000 --> 00:00:02.000\talign:start\nhi\n")
    assert (track[0].start, track[0].end, track[0].text) == ("00:00:01.000", "00:00:02.000", "hi")
