"""
stl_quote: STL mesh analysis and machining quotes.

The command-line entry point is main.py.
"""

from stl_quote.geometry.analyzer import AnalysisResult, Dimensions, analyze
from stl_quote.geometry.mesh import Mesh
from stl_quote.io.stl_decoder import (
    FormatError,
    IncompleteTriangleError,
    InvalidNumberError,
    STLLoadError,
    TruncatedError,
    UnrecognizedEncodingError,
    decode,
    load_stl,
)
from stl_quote.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)
from stl_quote.pipeline import analyze_bytes, analyze_file

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "Dimensions",
    "FormatError",
    "IncompleteTriangleError",
    "InvalidNumberError",
    "Mesh",
    "STLLoadError",
    "TruncatedError",
    "UnrecognizedEncodingError",
    "analyze",
    "analyze_bytes",
    "analyze_file",
    "decode",
    "load_stl",
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]
