"""
Entry point: quote a part from an STL file.

Usage:
    python main.py <stl_file> [--material NAME] [--quantity N] [--export [PATH]]
    python main.py --init-config [PATH]

Examples:
    python main.py bracket.stl
    python main.py bracket.stl --material "Acero 1018" --quantity 25
    python main.py bracket.stl --export quotes/bracket.json
    python main.py bracket.stl --json             # analysis as JSON on stdout
    python main.py --init-config                  # write a sample .quote.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

from stl_quote.export import build_quote_record, default_export_name, export_quote
from stl_quote.geometry.analyzer import AnalysisResult
from stl_quote.io.stl_decoder import STLLoadError
from stl_quote.logging_config import get_logger, setup_logging
from stl_quote.materials import MATERIALS
from stl_quote.pipeline import analyze_file
from stl_quote.project_config import (
    CONFIG_FILENAME,
    ProjectConfig,
    create_sample_config,
    load_config,
    merge_configs,
)
from stl_quote.quote import Quote, QuoteParameters, calculate_quote

logger = get_logger("stl_quote.main")


def run_pipeline(
    stl_path: str,
    params: QuoteParameters,
    export_path: Optional[str] = None,
    indent: int = 2,
) -> Tuple[AnalysisResult, Quote]:
    """Analyze an STL file and price it.

    Steps:
      1. Load and decode the STL.
      2. Measure bounding box, volume, area and time estimate.
      3. Apply the pricing formula.
      4. Export the quote record (when export_path is given).

    Raises:
        STLLoadError: if the file cannot be loaded or decoded
        ValueError: on invalid parameters
    """
    logger.info("Step 1-2: analyze %s", stl_path)
    analysis, _ = analyze_file(stl_path, density=params.density)

    logger.info("Step 3: quote %d x %s", params.quantity, params.material_name)
    quote = calculate_quote(analysis, params)

    if export_path:
        logger.info("Step 4: export quote record")
        record = build_quote_record(analysis, quote, params, file_name=Path(stl_path).name)
        export_quote(record, export_path, indent=indent)

    return analysis, quote


def _format_analysis(analysis: AnalysisResult, params: QuoteParameters) -> str:
    dims = analysis.dimensions
    weight = analysis.with_density(params.density).weight
    lines = [
        "Analysis",
        "=" * 40,
        f"Material:      {params.material_name} ({params.density:.2f} g/cm³)",
        f"Dimensions:    {dims.x:.2f} × {dims.y:.2f} × {dims.z:.2f} cm",
        f"Volume:        {analysis.volume:.2f} cm³",
        f"Surface area:  {analysis.surface_area:.2f} cm²",
        f"Weight:        {weight:.3f} kg",
        f"Triangles:     {analysis.triangle_count:,}",
        f"Est. time:     {analysis.estimated_hours:.2f} h",
    ]
    return "\n".join(lines)


def _build_params(args: argparse.Namespace, config: ProjectConfig) -> QuoteParameters:
    if args.material:
        config.analysis.material = args.material
        config.analysis.density = None
    if args.density is not None:
        config.analysis.density = args.density
    if args.quantity is not None:
        config.pricing.quantity = args.quantity
    if args.extra_hours is not None:
        config.pricing.extra_hours = args.extra_hours
    if args.margin is not None:
        config.pricing.profit_margin = args.margin
    return config.quote_parameters()


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Analyze an STL part and produce a machining quote.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Materials: " + ", ".join(MATERIALS),
    )
    parser.add_argument("stl_file", nargs="?", help="Path to the STL file (binary or ASCII).")
    parser.add_argument("--material", "-m", default=None,
                        help="Material name from the material table.")
    parser.add_argument("--density", type=float, default=None,
                        help="Override density in g/cm³.")
    parser.add_argument("--quantity", "-q", type=int, default=None,
                        help="Number of pieces.")
    parser.add_argument("--extra-hours", type=float, default=None, dest="extra_hours",
                        help="Manual hours added to the estimate.")
    parser.add_argument("--margin", type=float, default=None,
                        help="Profit margin in percent.")
    parser.add_argument("--config", "-c", default=None,
                        help="Path to a .quote.json laid over the discovered configuration.")
    parser.add_argument("--init-config", nargs="?", const=CONFIG_FILENAME, default=None,
                        dest="init_config", metavar="PATH",
                        help=f"Write a sample configuration file (default: {CONFIG_FILENAME}).")
    parser.add_argument("--export", "-e", nargs="?", const="", default=None,
                        help="Export the quote record as JSON (default name: quote-<ms>.json).")
    parser.add_argument("--json", action="store_true",
                        help="Print the analysis result as JSON instead of a summary.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
    args = parser.parse_args(argv)
    if args.stl_file is None and args.init_config is None:
        parser.error("the following arguments are required: stl_file")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    if args.init_config is not None:
        path = create_sample_config(args.init_config)
        print(f"Sample configuration written to {path}")
        return 0

    config = load_config(stl_path=args.stl_file)
    if args.config:
        config = merge_configs(config, load_config(explicit_config=args.config))

    level = logging.DEBUG if args.verbose else config.logging.level
    setup_logging(level=level, json_file=config.logging.json_file,
                  use_colors=config.logging.use_colors)

    export_path = None
    if args.export is not None:
        export_path = args.export or str(
            Path(config.output.export_dir or ".") / default_export_name(config.output.prefix)
        )

    try:
        params = _build_params(args, config)
        analysis, quote = run_pipeline(args.stl_file, params, export_path,
                                       indent=config.output.indent)
    except STLLoadError as exc:
        logger.critical("Could not process STL file: %s", exc)
        return 1
    except (KeyError, ValueError) as exc:
        logger.critical("Invalid parameters: %s", exc)
        return 1
    except Exception as exc:
        logger.critical("Unexpected error: %s", exc, exc_info=True)
        return 2

    if args.json:
        print(json.dumps(analysis.with_density(params.density).to_dict(), indent=2))
    else:
        print(_format_analysis(analysis, params))
        print()
        print(quote.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
