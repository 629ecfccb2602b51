from __future__ import annotations

from voxmend.utils.revision_extract import extract_revised_text, strip_context


def test_extract_prefers_fenced_block() -> None:
    response = "Sure, here you go:\n```text\nFixed text.\n```\nAnything else?"
    assert extract_revised_text(response) == "Fixed text."


def test_extract_reads_result_tags() -> None:
    assert extract_revised_text("<upgraded_text>\nHello there.\n</upgraded_text>") == "Hello there."
    assert extract_revised_text("noise <result>Hi.</result> noise") == "Hi."


def test_extract_reads_label_remainder() -> None:
    assert extract_revised_text("Result: Hello there.\nSecond line.") == "Hello there.\nSecond line."
    assert extract_revised_text("**Corrected text**: Fine.") == "Fine."


def test_extract_drops_instruction_echo_line() -> None:
    assert extract_revised_text("Here is the corrected text:\nHello there.") == "Hello there."


def test_extract_returns_plain_response() -> None:
    assert extract_revised_text("  Hello there.  ") == "Hello there."
    assert extract_revised_text("") == ""


def test_extract_removes_think_blocks() -> None:
    assert extract_revised_text("<think>reasoning...</think>\nHello there.") == "Hello there."


def test_strip_context_removes_echoed_neighbours() -> None:
    out = strip_context("prev bit. Hello. next bit", "prev bit. ", " next bit")
    assert out == "Hello."
    assert strip_context("Hello.", "", "") == "Hello."
    assert strip_context("Hello.", "unrelated", "other") == "Hello."


def test_extract_keeps_text_before_a_label_mid_response() -> None:
    response = "We reviewed the numbers.\nOutput: forty units per day, up from thirty last quarter."
    assert extract_revised_text(response) == response


def test_extract_keeps_transcript_line_ending_in_colon() -> None:
    response = "The agenda had two items:\nBudget and hiring. Both were approved today."
    assert extract_revised_text(response) == response
    assert extract_revised_text("Here's your revised transcript:\nBudget and hiring.") == "Budget and hiring."
