"""STL input: format detection and decoding."""

from stl_quote.io.stl_decoder import (
    AsciiSTLDecoder,
    BinarySTLDecoder,
    STLFormat,
    STLInfo,
    decode,
    detect_stl_format,
    load_stl,
    load_stl_with_info,
)

__all__ = [
    "AsciiSTLDecoder",
    "BinarySTLDecoder",
    "STLFormat",
    "STLInfo",
    "decode",
    "detect_stl_format",
    "load_stl",
    "load_stl_with_info",
]
