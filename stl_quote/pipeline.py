"""
Decode-then-analyze entry points.

Each call is independent: nothing is cached or shared between files. A
decode failure propagates before analysis starts, so callers either get a
complete AnalysisResult or an exception.
"""

import logging
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Optional, Tuple, Union

from stl_quote.geometry.analyzer import AnalysisResult, analyze
from stl_quote.io.stl_decoder import STLInfo, decode, load_stl_with_info
from stl_quote.logging_config import log_timing
from stl_quote.materials import DEFAULT_MATERIAL, MATERIALS

logger = logging.getLogger(__name__)

DEFAULT_DENSITY = MATERIALS[DEFAULT_MATERIAL].density


def analyze_bytes(data: bytes, density: float = DEFAULT_DENSITY) -> AnalysisResult:
    """Decode an STL buffer and analyze it.

    Raises:
        FormatError: if the buffer cannot be decoded
        ValueError: if density is not positive
    """
    with log_timing(logger, "analyze STL buffer", size_bytes=len(data)):
        mesh = decode(data)
        return analyze(mesh, density)


def analyze_file(
    stl_path: Union[str, Path],
    density: float = DEFAULT_DENSITY,
) -> Tuple[AnalysisResult, STLInfo]:
    """Load an STL file and analyze it.

    Raises:
        STLLoadError: if the file is missing, unreadable or malformed
        ValueError: if density is not positive
    """
    with log_timing(logger, "analyze STL file", level=logging.INFO, file=str(stl_path)):
        mesh, info = load_stl_with_info(stl_path)
        result = analyze(mesh, density)

    logger.info(
        "%s: %d triangles, %.2f x %.2f x %.2f cm, %.2f cm³",
        Path(stl_path).name, result.triangle_count,
        *result.dimensions.as_tuple(), result.volume,
    )
    return result, info


def submit_analysis(
    executor: Executor,
    data: bytes,
    density: float = DEFAULT_DENSITY,
) -> 'Future[AnalysisResult]':
    """Run analyze_bytes on `executor` so an interactive caller is not blocked.

    The future resolves to a complete result or to the decode exception.
    Cancelling it before it starts drops the job entirely; a superseded job
    that already runs simply has its result ignored by the caller.
    """
    return executor.submit(analyze_bytes, bytes(data), density)


class AnalysisSession:
    """Keeps the latest successful analysis for an interactive front end.

    A new upload supersedes any in-flight one: the older future is cancelled
    and, if it was already running, its outcome is discarded. A failed
    decode is reported but leaves the previous result in place.
    """

    def __init__(self, executor: Executor, density: float = DEFAULT_DENSITY):
        self.executor = executor
        self.density = density
        self.result: Optional[AnalysisResult] = None
        self.last_error: Optional[Exception] = None
        self._pending: Optional['Future[AnalysisResult]'] = None

    def submit(self, data: bytes) -> 'Future[AnalysisResult]':
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.debug("Superseded in-flight analysis")
        future = submit_analysis(self.executor, data, self.density)
        self._pending = future
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: 'Future[AnalysisResult]') -> None:
        if future is not self._pending or future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self.last_error = error
            logger.error("Could not process STL: %s", error)
            return
        self.result = future.result()
        self.last_error = None
