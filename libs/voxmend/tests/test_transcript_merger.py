from __future__ import annotations

import pytest

from voxmend.config import MergeSettings
from voxmend.exceptions import ConfigurationError
from voxmend.models.segment import TranscriptFragment, TranscriptSegment
from voxmend.utils.transcript_merger import MergeConfig, find_overlap, merge_fragments


def _frag(text: str, duration_s: float = 0.0, segments=None, **kwargs) -> TranscriptFragment:  # noqa: ANN001
    return TranscriptFragment(text=text, segments=list(segments or []), duration_s=duration_s, **kwargs)


def test_merge_removes_duplicated_boundary_phrase() -> None:
    merged = merge_fragments(
        [
            _frag("...and the results were good."),
            _frag("results were good. We concluded..."),
        ]
    )
    assert merged.text.count("results were good.") == 1
    assert merged.text == "...and the results were good. We concluded..."


def test_merge_removes_repeated_last_sentence() -> None:
    a = "We met at noon. The results were good."
    b = "The results were good. We concluded the study."
    assert find_overlap(a, b) == len("The results were good. ")

    merged = merge_fragments([_frag(a), _frag(b)])
    assert merged.text == "We met at noon. The results were good. We concluded the study."


def test_find_overlap_ignores_short_phrases() -> None:
    assert find_overlap("so it is", "it is fine") == 0
    assert find_overlap("I said ok", "ok then") == 0
    assert find_overlap("", "anything") == 0


def test_find_overlap_thresholds_are_configurable() -> None:
    cfg = MergeConfig(min_phrase_overlap_chars=3)
    assert find_overlap("so it is", "it is fine", cfg) == len("it is")


def test_merge_joins_with_single_space_only_when_needed() -> None:
    assert merge_fragments([_frag("Hello"), _frag("world")]).text == "Hello world"
    assert merge_fragments([_frag("Hello "), _frag("world")]).text == "Hello world"
    assert merge_fragments([_frag("Hello"), _frag(" world")]).text == "Hello world"


def test_merge_rebases_segments_and_renumbers_ids() -> None:
    first = _frag(
        "One. Two.",
        duration_s=10.0,
        segments=[
            TranscriptSegment(id="segment_1", text="One.", start=0.0, end=4.0, confidence=0.8),
            TranscriptSegment(id="segment_2", text="Two.", start=4.0, end=9.5, confidence=0.6),
        ],
    )
    second = _frag(
        "Three.",
        duration_s=12.0,
        segments=[TranscriptSegment(id="segment_1", text="Three.", start=1.0, end=3.0, confidence=1.0)],
    )

    merged = merge_fragments([first, second], language="en")

    assert [s.id for s in merged.segments] == ["segment_1", "segment_2", "segment_3"]
    assert [(s.start, s.end) for s in merged.segments] == [(0.0, 4.0), (4.0, 9.5), (11.0, 13.0)]
    assert merged.duration_s == pytest.approx(22.0)
    assert merged.language == "en"
    assert merged.confidence == pytest.approx(0.8)
    assert merged.word_count == 3

    assert merge_fragments([first, second], duration_s=21.5).duration_s == 21.5


def test_merge_counts_failed_fragments() -> None:
    merged = merge_fragments(
        [_frag("Start here."), TranscriptFragment.fallback(), _frag("End here.")]
    )
    assert merged.text == "Start here. End here."
    assert merged.failed_segments == 1
    assert merged.total_segments == 3
    assert merged.degradation is not None
    assert merged.degradation.failed_units == 1
    assert merged.degradation.total_units == 3


def test_merge_of_nothing_is_empty() -> None:
    merged = merge_fragments([])
    assert merged.text == ""
    assert merged.duration_s == 0.0
    assert merged.segments == ()
    assert merged.degradation is None


def test_merge_config_from_settings() -> None:
    cfg = MergeConfig.from_settings(MergeSettings(max_ngram=4, min_phrase_overlap_chars=2))
    assert cfg.max_ngram == 4
    assert cfg.min_phrase_overlap_chars == 2

    with pytest.raises(ConfigurationError):
        MergeSettings(min_ngram=6, max_ngram=5)
