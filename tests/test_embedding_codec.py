from __future__ import annotations

import struct

import pytest

from domain.knowledge.codec import decode_embedding, encode_embedding
from domain.knowledge.errors import CorruptEmbeddingError


def test_roundtrip_exact_for_float32_values() -> None:
    vec = [0.5, -1.25, 3.0, 0.0, 1e-3]
    decoded = decode_embedding(encode_embedding(vec))
    assert decoded == pytest.approx(vec, rel=1e-6)
    assert len(decoded) == len(vec)


def test_layout_is_packed_little_endian_without_header() -> None:
    blob = encode_embedding([1.0, 2.0])
    assert len(blob) == 8
    assert blob == struct.pack("<ff", 1.0, 2.0)
    assert blob[:4] == b"\x00\x00\x80\x3f"


def test_empty_blob_decodes_to_empty_list() -> None:
    assert decode_embedding(b"") == []


def test_truncated_blob_is_rejected() -> None:
    blob = encode_embedding([1.0, 2.0])[:-1]
    with pytest.raises(CorruptEmbeddingError):
        decode_embedding(blob)
