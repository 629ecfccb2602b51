from __future__ import annotations

from voxmend.utils.context_overlap import augment_chunks


def test_augment_chunks_adds_neighbour_context() -> None:
    chunks = augment_chunks(["abcdef", "ghij", "klmnop"], overlap_chars=3)

    assert [c.index for c in chunks] == [0, 1, 2]
    assert [c.raw_text for c in chunks] == ["abcdef", "ghij", "klmnop"]
    assert [c.augmented_text for c in chunks] == ["abcdefghi", "defghijklm", "hijklmnop"]
    assert chunks[0].left_context == ""
    assert chunks[2].right_context == ""
    for c in chunks:
        assert c.augmented_text == c.left_context + c.raw_text + c.right_context


def test_augment_chunks_single_chunk_has_no_context() -> None:
    (only,) = augment_chunks(["Just one."], overlap_chars=100)
    assert only.augmented_text == "Just one."


def test_augment_chunks_context_never_exceeds_neighbour() -> None:
    chunks = augment_chunks(["ab", "cd"], overlap_chars=100)
    assert chunks[0].right_context == "cd"
    assert chunks[1].left_context == "ab"


def test_augment_chunks_zero_overlap() -> None:
    chunks = augment_chunks(["one. ", "two."], overlap_chars=0)
    assert [c.augmented_text for c in chunks] == ["one. ", "two."]
