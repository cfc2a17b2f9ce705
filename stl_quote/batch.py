"""
Batch quoting of a folder of STL files.

Provides:
- Folder discovery (*.stl / *.STL, optionally recursive)
- Per-file analysis + quote with error capture
- Optional thread-pool processing
- JSON export of every quote and a summary report

Usage:
    from stl_quote.batch import batch_quote

    results = batch_quote("./parts", output_dir="./quotes", parallel=True)
    print(results.summary())
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from stl_quote.export import build_quote_record, export_quote
from stl_quote.geometry.analyzer import AnalysisResult
from stl_quote.logging_config import LogContext
from stl_quote.pipeline import analyze_file
from stl_quote.project_config import ProjectConfig, load_config, merge_configs
from stl_quote.quote import Quote, calculate_quote

logger = logging.getLogger(__name__)


@dataclass
class FileQuoteResult:
    """Outcome of quoting a single file."""
    input_path: Path
    analysis: Optional[AnalysisResult] = None
    quote: Optional[Quote] = None
    output_path: Optional[Path] = None
    success: bool = False
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def status(self) -> str:
        return "OK" if self.success else "FAILED"


@dataclass
class BatchResult:
    """Aggregate of a batch run."""
    results: List[FileQuoteResult] = field(default_factory=list)
    total_duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def success_rate(self) -> float:
        """Percentage of files quoted successfully."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.successful / self.total

    @property
    def grand_total(self) -> float:
        """Sum of quote totals over the successful files."""
        return sum(r.quote.total for r in self.results if r.success and r.quote)

    def summary(self) -> str:
        lines = [
            "Batch Quote Summary",
            "=" * 40,
            f"Total files:     {self.total}",
            f"Successful:      {self.successful}",
            f"Failed:          {self.failed}",
            f"Success rate:    {self.success_rate:.1f}%",
            f"Grand total:     ${self.grand_total:,.2f}",
            f"Total time:      {self.total_duration_seconds:.1f}s",
            "",
        ]

        if self.failed > 0:
            lines.append("Failed files:")
            for r in self.results:
                if not r.success:
                    lines.append(f"  - {r.input_path.name}: {r.error}")

        return "\n".join(lines)

    def to_dict(self) -> Dict:
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'success_rate': self.success_rate,
            'grand_total': self.grand_total,
            'total_duration_seconds': self.total_duration_seconds,
            'results': [
                {
                    'input': str(r.input_path),
                    'output': str(r.output_path) if r.output_path else None,
                    'success': r.success,
                    'error': r.error,
                    'duration': r.duration_seconds,
                    'analysis': r.analysis.to_dict() if r.analysis else None,
                    'total': r.quote.total if r.quote else None,
                }
                for r in self.results
            ],
        }


def find_stl_files(
    input_dir: Union[str, Path],
    pattern: str = "*.stl",
    recursive: bool = False,
) -> List[Path]:
    """List STL files in a directory, matching both .stl and .STL.

    Raises:
        FileNotFoundError: if the directory does not exist
        NotADirectoryError: if the path is a file
    """
    input_dir = Path(input_dir)

    if not input_dir.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not input_dir.is_dir():
        raise NotADirectoryError(f"Not a directory: {input_dir}")

    glob = input_dir.rglob if recursive else input_dir.glob
    files = set(glob(pattern))
    files.update(glob(pattern.replace('.stl', '.STL')))

    found = sorted(files)
    logger.info("Found %d STL files in %s", len(found), input_dir)
    return found


def quote_single_file(
    input_path: Path,
    config: Optional[ProjectConfig] = None,
    output_dir: Optional[Path] = None,
) -> FileQuoteResult:
    """Analyze and quote one file; failures are captured, not raised.

    When `output_dir` is given the quote record is exported there as
    <prefix><stem>.json.
    """
    start_time = time.perf_counter()
    config = config or ProjectConfig()
    result = FileQuoteResult(input_path=input_path)

    with LogContext(file=input_path.name):
        try:
            params = config.quote_parameters()
            analysis, _ = analyze_file(input_path, density=params.density)
            quote = calculate_quote(analysis, params)
            result.analysis = analysis
            result.quote = quote

            if output_dir is not None:
                record = build_quote_record(analysis, quote, params, file_name=input_path.name)
                output_path = output_dir / f"{config.output.prefix}{input_path.stem}.json"
                result.output_path = export_quote(record, output_path, indent=config.output.indent)

            result.success = True
        except Exception as e:
            result.error = str(e)
            logger.error("Failed to quote %s: %s", input_path.name, e)

    result.duration_seconds = time.perf_counter() - start_time
    return result


def batch_quote(
    input_dir: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    pattern: str = "*.stl",
    recursive: bool = False,
    config: Optional[ProjectConfig] = None,
    config_path: Optional[Union[str, Path]] = None,
    parallel: bool = False,
    max_workers: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int, FileQuoteResult], None]] = None,
) -> BatchResult:
    """Quote every STL file in a folder.

    Args:
        input_dir: Directory containing STL files
        output_dir: Where to export quote records (None = no export)
        pattern: Glob pattern for STL files
        recursive: Search subdirectories
        config: Project configuration
        config_path: .quote.json laid over the discovered config when `config` is None
        parallel: Process files on a thread pool
        max_workers: Pool size (None = executor default)
        progress_callback: Called after each file with (current, total, result)

    Returns:
        BatchResult in completion order
    """
    start_time = time.perf_counter()
    input_dir = Path(input_dir)
    out_dir = Path(output_dir) if output_dir else None
    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)

    if config is None:
        config = load_config(stl_path=input_dir / "dummy.stl")
        if config_path:
            config = merge_configs(config, load_config(explicit_config=config_path))

    stl_files = find_stl_files(input_dir, pattern, recursive)
    if not stl_files:
        logger.warning("No STL files found in %s", input_dir)
        return BatchResult(total_duration_seconds=time.perf_counter() - start_time)

    logger.info("Starting batch quote: %d files, parallel=%s", len(stl_files), parallel)
    results: List[FileQuoteResult] = []

    def _record(i: int, result: FileQuoteResult) -> None:
        results.append(result)
        if progress_callback:
            progress_callback(i, len(stl_files), result)
        logger.info(
            "[%d/%d] %s: %s (%.1fs)",
            i, len(stl_files), result.input_path.name,
            result.status, result.duration_seconds
        )

    if parallel:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(quote_single_file, path, config, out_dir)
                for path in stl_files
            ]
            for i, future in enumerate(as_completed(futures), 1):
                _record(i, future.result())
    else:
        for i, stl_file in enumerate(stl_files, 1):
            _record(i, quote_single_file(stl_file, config, out_dir))

    batch_result = BatchResult(
        results=results,
        total_duration_seconds=time.perf_counter() - start_time,
    )
    logger.info(
        "Batch quote complete: %d/%d successful (%.1f%%) in %.1fs",
        batch_result.successful, batch_result.total,
        batch_result.success_rate, batch_result.total_duration_seconds
    )
    return batch_result


def batch_quote_cli() -> int:
    """CLI entry point for batch quoting."""
    import argparse
    import json

    from stl_quote.logging_config import configure_default_logging

    parser = argparse.ArgumentParser(description="Quote every STL file in a folder")
    parser.add_argument("input_dir", help="Directory containing STL files")
    parser.add_argument("-o", "--output", dest="output_dir",
                        help="Directory for exported quote records")
    parser.add_argument("-p", "--pattern", default="*.stl",
                        help="File pattern (default: *.stl)")
    parser.add_argument("-r", "--recursive", action="store_true",
                        help="Search subdirectories")
    parser.add_argument("-c", "--config", help="Config file laid over the folder's .quote.json")
    parser.add_argument("-j", "--parallel", action="store_true",
                        help="Process files on a thread pool")
    parser.add_argument("-w", "--workers", type=int, default=None,
                        help="Number of worker threads")
    parser.add_argument("--report", help="Write the batch report as JSON to this path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    configure_default_logging(verbose=args.verbose)

    try:
        result = batch_quote(
            input_dir=args.input_dir,
            output_dir=args.output_dir,
            pattern=args.pattern,
            recursive=args.recursive,
            config_path=args.config,
            parallel=args.parallel,
            max_workers=args.workers,
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        logger.critical("%s", exc)
        return 1

    print(result.summary())
    if args.report:
        with open(args.report, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

    return 0 if result.failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(batch_quote_cli())
