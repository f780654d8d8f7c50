"""
Unit tests for the sliding-window chunking policy.
"""

import pytest

from tenant_rag.core.chunking import SlidingWindowChunker


class TestChunkingDisabled:

    def test_single_chunk_keyed_by_doc_id(self):
        chunks = SlidingWindowChunker().split("doc-1", "x" * 10000)
        assert len(chunks) == 1
        assert chunks[0].id == "doc-1"
        assert chunks[0].index == 0
        assert chunks[0].text == "x" * 10000


class TestSlidingWindow:

    def test_short_document_keeps_bare_id(self):
        chunks = SlidingWindowChunker(chunk_size=100, overlap=10).split("doc", "short")
        assert [c.id for c in chunks] == ["doc"]

    def test_windows_cover_content_without_overlap(self):
        chunks = SlidingWindowChunker(chunk_size=4).split("d", "abcdefghij")
        assert [c.text for c in chunks] == ["abcd", "efgh", "ij"]
        assert [c.id for c in chunks] == ["d#0", "d#1", "d#2"]

    def test_overlap(self):
        chunks = SlidingWindowChunker(chunk_size=4, overlap=2).split("d", "abcdefgh")
        assert [c.text for c in chunks] == ["abcd", "cdef", "efgh"]
        assert chunks[-1].end == 8

    def test_no_window_contained_in_previous(self):
        chunks = SlidingWindowChunker(chunk_size=5, overlap=3).split("d", "abcdefg")
        assert [c.text for c in chunks] == ["abcde", "cdefg"]

    def test_deterministic(self):
        chunker = SlidingWindowChunker(chunk_size=7, overlap=3)
        text = "the quick brown fox jumps over the lazy dog"
        assert chunker.split("d", text) == chunker.split("d", text)

    @pytest.mark.parametrize("size,overlap", [(4, 4), (4, 5), (-1, 0)])
    def test_invalid_configuration(self, size, overlap):
        with pytest.raises(ValueError):
            SlidingWindowChunker(chunk_size=size, overlap=overlap)
