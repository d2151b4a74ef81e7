"""Packed float32 embedding blobs.

Layout: little-endian IEEE-754 single precision, four bytes per element,
no header and no length prefix.
"""
from __future__ import annotations

import struct
from typing import List, Sequence

from domain.knowledge.errors import CorruptEmbeddingError

_ITEM_SIZE = 4


def encode_embedding(vector: Sequence[float]) -> bytes:
    values = [float(v) for v in vector]
    return struct.pack(f"<{len(values)}f", *values)


def decode_embedding(blob: bytes) -> List[float]:
    if len(blob) % _ITEM_SIZE:
        raise CorruptEmbeddingError(
            f"embedding blob of {len(blob)} bytes is not a multiple of {_ITEM_SIZE}"
        )
    n = len(blob) // _ITEM_SIZE
    return list(struct.unpack(f"<{n}f", blob))
