"""
================================================================================
FILE: tenant_rag/core/chunking.py
================================================================================

PURPOSE:
    Optional character sliding-window chunking applied by the document indexer.

    CHUNK_SIZE=0 (default)  -> one chunk per document, vector id == doc_id
    CHUNK_SIZE>0            -> windows of CHUNK_SIZE chars, stride
                               CHUNK_SIZE - CHUNK_OVERLAP, ids doc_id#0, doc_id#1, ...

    A document no longer than CHUNK_SIZE is still stored under its bare
    doc_id, so turning chunking on does not rename short documents.

KEY FACTS:
    - Deterministic: same content + settings -> same chunk ids and texts
    - The last window ends exactly at the end of the content; no window is
      emitted that lies entirely inside the previous one
"""

import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

CHUNK_ID_SEPARATOR = "#"


@dataclass(frozen=True)
class Chunk:
    id: str
    index: int
    text: str
    start: int
    end: int


class SlidingWindowChunker:
    """
    Fixed-size sliding window chunker.

    Example:
        >>> chunker = SlidingWindowChunker(chunk_size=512, overlap=50)
        >>> chunks = chunker.split("doc-1", text)
    """

    def __init__(self, chunk_size: int = 0, overlap: int = 0) -> None:
        if chunk_size < 0 or overlap < 0:
            raise ValueError("chunk_size and overlap must be >= 0")
        if chunk_size and overlap >= chunk_size:
            raise ValueError("overlap must be smaller than chunk_size")
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.stride = chunk_size - overlap if chunk_size else 0

    @classmethod
    def from_settings(cls, settings) -> "SlidingWindowChunker":
        return cls(
            chunk_size=settings.document_chunk_size,
            overlap=settings.document_chunk_overlap,
        )

    @property
    def enabled(self) -> bool:
        return self.chunk_size > 0

    def split(self, doc_id: str, content: str) -> List[Chunk]:
        if not self.enabled or len(content) <= self.chunk_size:
            return [Chunk(id=doc_id, index=0, text=content, start=0, end=len(content))]

        chunks: List[Chunk] = []
        start = 0
        while True:
            end = min(start + self.chunk_size, len(content))
            index = len(chunks)
            chunks.append(
                Chunk(
                    id=f"{doc_id}{CHUNK_ID_SEPARATOR}{index}",
                    index=index,
                    text=content[start:end],
                    start=start,
                    end=end,
                )
            )
            if end >= len(content):
                break
            start += self.stride

        logger.debug("Chunked %d chars into %d chunks", len(content), len(chunks))
        return chunks


__all__ = ["Chunk", "SlidingWindowChunker", "CHUNK_ID_SEPARATOR"]
