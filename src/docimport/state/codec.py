"""
Document state codec for docimport.

Encodes a document tree into a compact, integrity-checked binary blob.

Format:
- Header (struct "<4sBI", 9 bytes): magic b"DOCS", format version, xxhash32 of
  the uncompressed payload
- Body: zstd-compressed canonical JSON of the tree (sorted keys, compact
  separators, UTF-8)
"""

import json
import struct
from typing import Any, Dict

import xxhash
import zstandard as zstd

from docimport.core.errors import StateIntegrityError

HEADER_FORMAT = "<4sBI"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
MAGIC = b"DOCS"
FORMAT_VERSION = 1


def compress_data(data: bytes, level: int = 3) -> bytes:
    """
    Compress data using zstd.

    Args:
        data: Data to compress
        level: Compression level (1-22, default 3)

    Returns:
        Compressed data
    """
    cctx = zstd.ZstdCompressor(level=level)
    return cctx.compress(data)


def decompress_data(compressed_data: bytes) -> bytes:
    """Decompress data produced by compress_data."""
    dctx = zstd.ZstdDecompressor()
    return dctx.decompress(compressed_data)


def serialize_tree(tree: Dict[str, Any]) -> bytes:
    """Canonical JSON encoding of a tree; equal trees give equal bytes."""
    return json.dumps(
        tree, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


class StateCodec:
    """Binary codec for document trees."""

    def __init__(self, level: int = 3):
        """
        Initialize codec.

        Args:
            level: zstd compression level
        """
        self.level = level

    def encode(self, tree: Dict[str, Any]) -> bytes:
        """
        Encode a document tree into a state blob.

        Args:
            tree: Root `doc` node

        Returns:
            Header followed by the compressed payload
        """
        payload = serialize_tree(tree)
        checksum = xxhash.xxh32(payload).intdigest()
        header = struct.pack(HEADER_FORMAT, MAGIC, FORMAT_VERSION, checksum)
        return header + compress_data(payload, self.level)

    def decode(self, state: bytes) -> Dict[str, Any]:
        """
        Decode a state blob back into a document tree.

        Raises:
            StateIntegrityError: If the header, compression or checksum is invalid
        """
        if len(state) < HEADER_SIZE:
            raise StateIntegrityError("State is too short to contain a header")

        magic, version, checksum = struct.unpack(HEADER_FORMAT, state[:HEADER_SIZE])
        if magic != MAGIC:
            raise StateIntegrityError(f"Unknown state format: {magic!r}")
        if version != FORMAT_VERSION:
            raise StateIntegrityError(f"Unsupported state version: {version}")

        try:
            payload = decompress_data(state[HEADER_SIZE:])
        except zstd.ZstdError as e:
            raise StateIntegrityError(f"Corrupt state payload: {e}") from e

        if xxhash.xxh32(payload).intdigest() != checksum:
            raise StateIntegrityError("Checksum mismatch for state payload")

        return json.loads(payload.decode("utf-8"))
