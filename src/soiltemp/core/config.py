"""
Configuration system with validation and environment awareness.
Based on Pydantic Settings; every constant a model uses is a named,
overridable field here rather than a literal inside the model.
"""
import logging
from pathlib import Path
import yaml
from pydantic import Field, field_validator, model_validator, ConfigDict
from pydantic_settings import BaseSettings
from typing import List, Dict, Optional, Literal, Union

from soiltemp.core.constants import (
    DEFAULT_COVER_BIOMASS_KG_HA,
    DEFAULT_MOISTURE_PAW_FRACTION,
    DEFAULT_FIXED_LAYER_THICKNESS_CM,
    DEFAULT_FIXED_LAYER_COUNT,
    DEFAULT_FIVE_LAYER_BOUNDARIES_CM,
    DEFAULT_DEEP_LAYER_DEPTH_CM,
)


class GridConfig(BaseSettings):
    """Fixed depth discretizations used by models with their own grid"""

    fixed_layer_thickness_cm: float = Field(
        DEFAULT_FIXED_LAYER_THICKNESS_CM, gt=0, description="Layer thickness of the uniform grid")
    fixed_layer_count: int = Field(
        DEFAULT_FIXED_LAYER_COUNT, gt=0, description="Number of layers in the uniform grid")
    five_layer_boundaries_cm: List[float] = Field(
        default=list(DEFAULT_FIVE_LAYER_BOUNDARIES_CM),
        description="Boundaries of the fixed five-layer grid, starting at 0"
    )
    deep_layer_depth_cm: float = Field(
        DEFAULT_DEEP_LAYER_DEPTH_CM, gt=0, description="Depth of the single deep layer")

    @field_validator("five_layer_boundaries_cm")
    @classmethod
    def validate_five_layers(cls, v):
        if len(v) != 6:
            raise ValueError(f"five-layer grid needs 6 boundaries (got {len(v)})")
        if v[0] != 0 or any(b <= a for a, b in zip(v, v[1:])):
            raise ValueError("five-layer boundaries must start at 0 and increase strictly")
        return v

    model_config = ConfigDict(env_prefix="SOILTEMP_GRID_")


class ModelConstants(BaseSettings):
    """Named physical constants of the individual soil temperature models"""

    # Damping-depth models (stemp, epic)
    surface_history_days: int = Field(5, gt=0, description="Days of surface temperature history")
    epic_lag_coefficient: float = Field(0.5, ge=0, lt=1, description="Per-layer lag of the EPIC model")
    epic_wet_day_window: int = Field(30, gt=0, description="Days used for the wet-day fraction")
    wet_day_threshold_mm: float = Field(0.0, ge=0, description="Rain above which a day counts as wet")

    # SWAT-style layers (swat, parton_swat)
    swat_lag_coefficient: float = Field(0.8, ge=0, lt=1, description="SWAT soil temperature lag")

    # Conduction models (campbell, five_layer)
    campbell_substeps_per_day: int = Field(24, gt=0, description="Implicit substeps per day")
    clay_fraction: float = Field(0.2, gt=0, le=1, description="Clay fraction for thermal conductivity")
    five_layer_substeps_per_day: int = Field(4, gt=0, description="Implicit substeps per day")
    snow_damping_per_mm: float = Field(0.02, ge=0, description="Snow insulation per mm SWE")

    # Single deep layer model
    deep_lag_coefficient: float = Field(0.9, ge=0, lt=1, description="Deep layer relaxation lag")
    heat_flux_coefficient: float = Field(
        0.4, ge=0, description="Surface warming per MJ/m² of absorbed radiation (°C)")

    # Harmonic model
    harmonic_anomaly_lag: float = Field(0.8, ge=0, lt=1, description="Lag of the air temperature anomaly")
    harmonic_anomaly_period_days: float = Field(10.0, gt=0, description="Period the anomaly is damped at")

    model_config = ConfigDict(env_prefix="SOILTEMP_MODELS_")


class ScenarioConfig(BaseSettings):
    """Lookups from scenario levels to physical values"""

    cover_biomass_kg_ha: Dict[int, float] = Field(
        default_factory=lambda: dict(DEFAULT_COVER_BIOMASS_KG_HA),
        description="Cover level (LAI class) -> above-ground biomass"
    )
    moisture_paw_fraction: Dict[int, float] = Field(
        default_factory=lambda: dict(DEFAULT_MOISTURE_PAW_FRACTION),
        description="Moisture level (% PAW) -> plant available water fraction"
    )

    @field_validator("moisture_paw_fraction")
    @classmethod
    def validate_paw(cls, v):
        for level, fraction in v.items():
            if not 0.0 <= fraction <= 1.0:
                raise ValueError(f"PAW fraction for level {level} must lie in [0, 1] (got {fraction})")
        return v

    model_config = ConfigDict(env_prefix="SOILTEMP_SCENARIOS_")


class RuntimeConfig(BaseSettings):
    """Batch execution and logging"""

    max_workers: Optional[int] = Field(None, gt=0, description="Worker threads (None: CPU count)")
    output_grid: Literal["model", "scenario"] = Field(
        "model", description="Report temperatures on the model grid or the scenario soil grid")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    def configure_logging(self):
        """Apply level and format to the root logger"""
        logging.basicConfig(level=getattr(logging, self.log_level), format=self.log_format)

    model_config = ConfigDict(env_prefix="SOILTEMP_RUNTIME_")


class HarnessConfig(BaseSettings):
    """Main configuration for the soiltemp harness"""

    project_name: str = "soiltemp"

    grid: GridConfig = Field(default_factory=GridConfig)
    models: ModelConstants = Field(default_factory=ModelConstants)
    scenarios: ScenarioConfig = Field(default_factory=ScenarioConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    model_config = ConfigDict(
        env_prefix="SOILTEMP_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_config(self):
        """Cross-field validation"""
        uniform_depth = self.grid.fixed_layer_thickness_cm * self.grid.fixed_layer_count
        if uniform_depth < self.grid.five_layer_boundaries_cm[-1]:
            raise ValueError(
                f"Uniform grid ({uniform_depth} cm) is shallower than the five-layer grid"
            )
        return self

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "HarnessConfig":
        """Load configuration from YAML file"""
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        return cls(**yaml_config)

    def to_yaml(self, yaml_path: Union[str, Path]):
        """Save configuration to YAML file"""
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)


# Global configuration instance
_config: Optional[HarnessConfig] = None


def get_config(config_path: Optional[Path] = None) -> HarnessConfig:
    """Get or create configuration instance (singleton pattern)"""
    global _config

    if _config is None:
        if config_path and config_path.exists():
            _config = HarnessConfig.from_yaml(config_path)
        else:
            # Try to load from environment
            _config = HarnessConfig()

    return _config


def set_config(config: Optional[HarnessConfig]):
    """Set configuration (useful for testing)"""
    global _config
    _config = config
