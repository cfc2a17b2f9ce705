"""
JSON-based project configuration for stl_quote.

Configuration hierarchy (first found wins):
1. Explicit config file path (CLI --config)
2. .quote.json in the STL file's directory
3. .quote.json in the current working directory
4. ~/.quote.json

Example .quote.json:
{
    "analysis": {
        "material": "Acero 1018"
    },
    "pricing": {
        "machine_hour_rate": 900.0,
        "setup_cost": 450.0,
        "profit_margin": 25.0,
        "quantity": 10
    },
    "output": {
        "export_dir": "quotes",
        "prefix": "quote-"
    },
    "logging": {
        "level": "DEBUG",
        "json_file": "stl_quote.log.json"
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from stl_quote.materials import DEFAULT_MATERIAL
from stl_quote.quote import QuoteParameters

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".quote.json"


@dataclass
class AnalysisConfig:
    """Which material the part is analyzed in."""
    material: str = DEFAULT_MATERIAL
    density: Optional[float] = None  # None = take it from the material table


@dataclass
class PricingConfig:
    """Shop rates and order defaults."""
    machine_hour_rate: float = 850.0
    setup_cost: float = 500.0
    finishing_cost_per_cm2: float = 1.2
    complexity_factor: float = 1.0
    profit_margin: float = 30.0
    quantity: int = 1
    extra_hours: float = 0.0
    external_machining_cost: float = 0.0
    external_cost_per_piece: bool = True


@dataclass
class OutputConfig:
    """Where exported quote records go."""
    export_dir: str = ""
    prefix: str = "quote-"
    indent: int = 2


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json_file: Optional[str] = None
    use_colors: bool = True


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Build a config from a dict; unknown sections and keys are ignored."""
        config = cls()
        for section in fields(cls):
            values = data.get(section.name)
            if not isinstance(values, dict):
                continue
            target = getattr(config, section.name)
            for key, value in values.items():
                if hasattr(target, key):
                    setattr(target, key, value)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            config = cls.from_json(f.read())
        logger.info("Configuration loaded from %s", path)
        return config

    def quote_parameters(self) -> QuoteParameters:
        """QuoteParameters for the configured material and shop rates.

        Raises:
            KeyError: if the configured material is unknown
        """
        overrides: Dict[str, Any] = asdict(self.pricing)
        if self.analysis.density is not None:
            overrides['density'] = self.analysis.density
        return QuoteParameters.for_material(self.analysis.material, **overrides)


def find_config_file(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Locate the configuration file following the search hierarchy."""
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    candidates = []
    if stl_path:
        candidates.append(Path(stl_path).parent / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration, falling back to defaults when none is usable."""
    config_path = find_config_file(stl_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Apply every non-default value of `override` on top of `base`."""
    merged = ProjectConfig.from_dict(base.to_dict())
    defaults = ProjectConfig()

    for section in fields(ProjectConfig):
        default_section = getattr(defaults, section.name)
        for key, value in asdict(getattr(override, section.name)).items():
            if value != getattr(default_section, key):
                setattr(getattr(merged, section.name), key, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> Path:
    """Write a documented sample configuration file."""
    sample = {
        "_comment": "stl_quote configuration",
        "_version": "1.0",
        "analysis": {
            "_comment": "Material name from the material table; density overrides it",
            "material": DEFAULT_MATERIAL,
            "density": None,
        },
        "pricing": {
            "_comment": "Shop rates; profit_margin is a percentage",
            **asdict(PricingConfig()),
        },
        "output": asdict(OutputConfig()),
        "logging": asdict(LoggingConfig()),
    }

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
    return path
