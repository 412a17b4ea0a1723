"""
Scenario enumeration.
Expands site, soil, cover and moisture identifiers into scenario descriptors
and maps cover/moisture levels onto physical values.
"""
import logging
from itertools import product
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from soiltemp.core.config import ScenarioConfig, get_config
from soiltemp.core.exceptions import ConfigurationError, ErrorContext
from soiltemp.core.types import ScenarioDescriptor, ScenarioParameters, SiteID, SoilID

logger = logging.getLogger(__name__)


class ScenarioLookup:
    """Cover level -> biomass and moisture level -> PAW fraction"""

    def __init__(self, cover_biomass_kg_ha: Mapping[int, float],
                 moisture_paw_fraction: Mapping[int, Optional[float]]):
        self.cover_biomass_kg_ha = dict(cover_biomass_kg_ha)
        self.moisture_paw_fraction = dict(moisture_paw_fraction)

    @classmethod
    def from_config(cls, config: Optional[ScenarioConfig] = None) -> "ScenarioLookup":
        config = config or get_config().scenarios
        return cls(config.cover_biomass_kg_ha, config.moisture_paw_fraction)

    def biomass(self, cover_level: int) -> float:
        try:
            return self.cover_biomass_kg_ha[cover_level]
        except KeyError:
            raise ConfigurationError(
                f"Unknown cover level {cover_level}; known: {sorted(self.cover_biomass_kg_ha)}",
                ErrorContext(component="scenarios"),
            ) from None

    def paw_fraction(self, moisture_level: int) -> Optional[float]:
        try:
            return self.moisture_paw_fraction[moisture_level]
        except KeyError:
            raise ConfigurationError(
                f"Unknown moisture level {moisture_level}; known: {sorted(self.moisture_paw_fraction)}",
                ErrorContext(component="scenarios"),
            ) from None


def _unique(values: Sequence) -> List:
    """Drop repeated identifiers, keeping first occurrence"""
    seen = set()
    out = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


class ScenarioResolver:
    """
    Deterministic Cartesian product of scenario axes.

    Descriptors are produced in input order: sites vary slowest, moisture
    levels fastest. Levels are checked against the lookup up front so an
    unknown level fails before any scenario runs.
    """

    def __init__(
        self,
        sites: Sequence[SiteID],
        soils: Sequence[SoilID],
        cover_levels: Sequence[int],
        moisture_levels: Sequence[int],
        lookup: Optional[ScenarioLookup] = None,
    ):
        self.sites = _unique(sites)
        self.soils = _unique(soils)
        self.cover_levels = _unique(cover_levels)
        self.moisture_levels = _unique(moisture_levels)
        self.lookup = lookup or ScenarioLookup.from_config()

        for level in self.cover_levels:
            self.lookup.biomass(level)
        for level in self.moisture_levels:
            self.lookup.paw_fraction(level)

    def __iter__(self) -> Iterator[ScenarioDescriptor]:
        for site, soil, cover, moisture in product(
            self.sites, self.soils, self.cover_levels, self.moisture_levels
        ):
            yield ScenarioDescriptor(site, soil, cover, moisture)

    def __len__(self) -> int:
        return len(self.sites) * len(self.soils) * len(self.cover_levels) * len(self.moisture_levels)

    def descriptors(self) -> List[ScenarioDescriptor]:
        descriptors = list(self)
        logger.info(
            f"Resolved {len(descriptors)} scenarios ({len(self.sites)} sites x {len(self.soils)} soils x "
            f"{len(self.cover_levels)} cover x {len(self.moisture_levels)} moisture)"
        )
        return descriptors

    def resolve(self, descriptor: ScenarioDescriptor) -> ScenarioParameters:
        """Physical values for a descriptor's cover and moisture levels"""
        return ScenarioParameters(
            biomass_kg_ha=self.lookup.biomass(descriptor.cover_level),
            paw_fraction=self.lookup.paw_fraction(descriptor.moisture_level),
        )

    def resolve_all(self) -> Dict[ScenarioDescriptor, ScenarioParameters]:
        return {descriptor: self.resolve(descriptor) for descriptor in self}
