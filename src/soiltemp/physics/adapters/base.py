"""
Uniform contract for point-in-time soil temperature models.

Each physical model is wrapped by a ModelAdapter:

    state = adapter.initialize(site, soil, first_day, scenario_params)
    for day in weather:
        state, outputs = adapter.step(state, day)

`step` is a pure function of (state, forcing): adapters keep no per-scenario
attributes, and states are frozen dataclasses whose arrays are read-only, so
a state is replaced by every step and never mutated.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Dict, List, Optional, Tuple, Type

import numpy as np

from soiltemp.core.config import HarnessConfig, get_config
from soiltemp.core.exceptions import UnimplementedModelError, ErrorContext
from soiltemp.core.constants import HOTTEST_DAY_NORTH, HOTTEST_DAY_SOUTH
from soiltemp.core.types import GridKind, ModelID, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.remap import DepthGrid, RemapMode, remap

logger = logging.getLogger(__name__)


def frozen_array(values) -> np.ndarray:
    """Read-only float copy for storage inside a model state"""
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class ModelState:
    """Base of all model states; `day` counts completed steps"""
    day: int


@dataclass(frozen=True)
class DailyOutputs:
    """One day of native model output"""
    date: date
    surface_mean: float
    grid: DepthGrid
    mean: np.ndarray
    surface_min: Optional[float] = None
    surface_max: Optional[float] = None
    min: Optional[np.ndarray] = None
    max: Optional[np.ndarray] = None

    def values(self) -> List[float]:
        """All numeric values carried, for finiteness checks"""
        out = [self.surface_mean, *np.asarray(self.mean).tolist()]
        for extra in (self.surface_min, self.surface_max):
            if extra is not None:
                out.append(extra)
        for arr in (self.min, self.max):
            if arr is not None:
                out.extend(np.asarray(arr).tolist())
        return out


class ModelAdapter(ABC):
    """
    Abstract base class for soil temperature model wrappers.

    Subclasses declare what they need through class attributes; the base
    class checks those requirements so no model silently defaults a missing
    input.
    """

    model_id: ClassVar[ModelID]
    native_grid_kind: ClassVar[GridKind] = GridKind.SCENARIO
    required_forcing: ClassVar[Tuple[str, ...]] = ()
    required_site: ClassVar[Tuple[str, ...]] = ()
    required_soil: ClassVar[Tuple[str, ...]] = ("bulk_density_g_cm3",)
    provides_min_max: ClassVar[bool] = False

    def __init__(self, config: Optional[HarnessConfig] = None):
        config = config or get_config()
        self.constants = config.models
        self.grids = config.grid
        self.output_grid = config.runtime.output_grid

    def initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> ModelState:
        """Validate inputs and build the model's initial state"""
        site.require(*self.required_site)
        for name in self.required_soil:
            soil.property_array(name)
        self.check_forcing(first_day)
        logger.debug(f"Initializing {self.model_id} on {soil.soil_id} ({soil.grid.n_layers} layers)")
        return self._initialize(site, soil, first_day, scenario)

    def step(self, state: ModelState, forcing: WeatherRecord) -> Tuple[ModelState, DailyOutputs]:
        """Advance exactly one day"""
        self.check_forcing(forcing)
        return self._step(state, forcing)

    def check_forcing(self, forcing: WeatherRecord) -> None:
        forcing.require(*self.required_forcing)

    @abstractmethod
    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> ModelState:
        pass

    @abstractmethod
    def _step(self, state: ModelState, forcing: WeatherRecord) -> Tuple[ModelState, DailyOutputs]:
        pass

    # ------------------------------------------------------------------
    # Helpers shared by the variants
    # ------------------------------------------------------------------

    def model_grid(self, soil: SoilProfile) -> DepthGrid:
        """Native depth discretization of this model for a given soil"""
        kind = self.native_grid_kind
        if kind is GridKind.FIXED_UNIFORM:
            return DepthGrid.uniform(self.grids.fixed_layer_thickness_cm, self.grids.fixed_layer_count)
        if kind is GridKind.FIXED_FIVE_LAYER:
            return DepthGrid.from_boundaries(self.grids.five_layer_boundaries_cm)
        if kind is GridKind.SINGLE_DEEP_LAYER:
            return DepthGrid.from_boundaries([0.0, self.grids.deep_layer_depth_cm])
        return soil.grid

    def reporting_grid(self, soil: SoilProfile, model_grid: DepthGrid) -> DepthGrid:
        return soil.grid if self.output_grid == "scenario" else model_grid

    @staticmethod
    def to_reporting_grid(model_grid: DepthGrid, values: np.ndarray, reporting: DepthGrid) -> np.ndarray:
        return remap(model_grid, values, reporting, RemapMode.INTENSIVE)

    @staticmethod
    def soil_water(soil: SoilProfile, scenario: ScenarioParameters) -> np.ndarray:
        """Volumetric water content per layer for the scenario's moisture level"""
        if scenario.paw_fraction is None:
            return soil.property_array("water_content")
        wp = soil.property_array("wilting_point")
        fc = soil.property_array("field_capacity")
        return wp + scenario.paw_fraction * (fc - wp)

    @staticmethod
    def hottest_day(site: SiteParameters) -> int:
        """Day of year of the annual air temperature maximum"""
        return HOTTEST_DAY_NORTH if site.latitude >= 0 else HOTTEST_DAY_SOUTH


class AdapterRegistry:
    """Maps model identifiers to adapter classes"""

    def __init__(self):
        self._adapters: Dict[ModelID, Type[ModelAdapter]] = {}

    def register(self, adapter_cls: Type[ModelAdapter]) -> Type[ModelAdapter]:
        model_id = adapter_cls.model_id
        if model_id in self._adapters and self._adapters[model_id] is not adapter_cls:
            raise ValueError(f"Model id already registered: {model_id}")
        self._adapters[model_id] = adapter_cls
        return adapter_cls

    def get(self, model_id: ModelID) -> Type[ModelAdapter]:
        try:
            return self._adapters[model_id]
        except KeyError:
            raise UnimplementedModelError(
                f"No adapter registered for model '{model_id}'",
                ErrorContext(model_id=model_id, component="registry",
                             details={"available": self.available()}),
            ) from None

    def create(self, model_id: ModelID, config: Optional[HarnessConfig] = None) -> ModelAdapter:
        return self.get(model_id)(config)

    def available(self) -> List[ModelID]:
        return sorted(self._adapters)

    def __contains__(self, model_id: ModelID) -> bool:
        return model_id in self._adapters


ADAPTERS = AdapterRegistry()


def register_adapter(adapter_cls: Type[ModelAdapter]) -> Type[ModelAdapter]:
    """Class decorator adding an adapter to the default registry"""
    return ADAPTERS.register(adapter_cls)
