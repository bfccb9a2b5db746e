"""
Document state: markdown to tree conversion and the binary state codec.
"""

from docimport.state.codec import StateCodec, compress_data, decompress_data
from docimport.state.tree import build_tree

__all__ = [
    "build_tree",
    "StateCodec",
    "compress_data",
    "decompress_data",
]
