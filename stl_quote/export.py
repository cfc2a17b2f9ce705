"""
Human-readable quote record.

The record mirrors what a customer sees: formatted measurements and one
formatted line per cost item. It is a plain dict of strings and numbers and
is written as pretty-printed JSON.
"""

import json
import logging
import time
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional, Union

from stl_quote.geometry.analyzer import AnalysisResult
from stl_quote.quote import Quote, QuoteParameters

logger = logging.getLogger(__name__)


def _money(value: float) -> str:
    return f"${value:.2f}"


def build_quote_record(
    analysis: AnalysisResult,
    quote: Quote,
    params: QuoteParameters,
    file_name: str = "",
    quote_date: Optional[date] = None,
) -> Dict[str, Any]:
    """Assemble the exportable quote record.

    Weight is reported at params.density, matching the material cost line.
    """
    quote_date = quote_date or date.today()
    dims = analysis.dimensions
    weight = analysis.with_density(params.density).weight

    return {
        'date': quote_date.strftime("%d/%m/%Y"),
        'file': file_name,
        'material': params.material_name,
        'analysis': {
            'dimensions': f"{dims.x:.2f} × {dims.y:.2f} × {dims.z:.2f} cm",
            'volume': f"{analysis.volume:.2f} cm³",
            'weight': f"{weight:.3f} kg",
            'surface_area': f"{analysis.surface_area:.2f} cm²",
            'estimated_time': f"{quote.total_hours:.2f} hrs",
        },
        'quote': {
            'material': _money(quote.material_cost),
            'machining': _money(quote.machining_cost),
            'finishing': _money(quote.finishing_cost),
            'setup': _money(quote.setup_cost),
            'external': _money(quote.external_cost),
            'subtotal': _money(quote.subtotal),
            'profit': _money(quote.profit),
            'total': _money(quote.total),
            'quantity': params.quantity,
            'price_per_unit': _money(quote.price_per_unit),
        },
    }


def default_export_name(prefix: str = "quote-") -> str:
    """File name stamped with the current time in milliseconds."""
    return f"{prefix}{int(time.time() * 1000)}.json"


def export_quote(record: Dict[str, Any], path: Union[str, Path], indent: int = 2) -> Path:
    """Write a quote record as UTF-8 JSON and return the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(record, f, indent=indent, ensure_ascii=False)
    logger.info("Quote exported to %s", path)
    return path
