"""
Batch runner: fans independent scenarios out over a thread pool.
Each scenario gets its own adapter and driver; nothing mutable is shared.
"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from soiltemp.core.config import HarnessConfig, get_config
from soiltemp.core.exceptions import UnimplementedModelError
from soiltemp.core.types import ModelID, ScenarioDescriptor, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.adapters import ADAPTERS, AdapterRegistry
from soiltemp.pipeline.driver import ScenarioFailure, ScenarioResult, SteppingDriver
from soiltemp.pipeline.unifier import records_to_frame


@dataclass(frozen=True)
class ScenarioJob:
    """Fully materialized inputs of one scenario run"""
    descriptor: ScenarioDescriptor
    model_id: ModelID
    parameters: ScenarioParameters
    site: SiteParameters
    soil: SoilProfile
    weather: Sequence[WeatherRecord]


@dataclass
class BatchResult:
    """Per-job results in submission order"""
    results: List[ScenarioResult] = field(default_factory=list)

    @property
    def completed(self) -> List[ScenarioResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def skipped(self) -> List[ScenarioResult]:
        return [r for r in self.results if not r.succeeded and r.failure.kind == UnimplementedModelError.__name__]

    @property
    def failed(self) -> List[ScenarioResult]:
        return [r for r in self.results if not r.succeeded and r.failure.kind != UnimplementedModelError.__name__]

    @property
    def failures(self) -> List[ScenarioFailure]:
        return [r.failure for r in self.results if not r.succeeded]

    def to_frame(self) -> pd.DataFrame:
        """All completed records, labelled by scenario and model"""
        frames = [
            records_to_frame(r.records, scenario=r.descriptor.key, model_id=r.model_id)
            for r in self.completed
        ]
        if not frames:
            return records_to_frame([], scenario=None, model_id=None)
        return pd.concat(frames, ignore_index=True)

    def summary(self) -> dict:
        return {
            "total": len(self.results),
            "completed": len(self.completed),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
        }


class BatchRunner:
    """Runs scenario jobs concurrently; one job's failure never affects another"""

    def __init__(self, config: Optional[HarnessConfig] = None, registry: Optional[AdapterRegistry] = None):
        self.config = config or get_config()
        self.registry = registry or ADAPTERS
        self.logger = logging.getLogger("soiltemp.pipeline.batch")

    def run_job(self, job: ScenarioJob) -> ScenarioResult:
        """Run one job; errors become a ScenarioFailure"""
        try:
            adapter = self.registry.create(job.model_id, self.config)
        except UnimplementedModelError as e:
            e.with_context(scenario_id=job.descriptor.key)
            self.logger.warning(f"Skipping scenario {job.descriptor}: {e}")
            return ScenarioResult(job.descriptor, job.model_id, ScenarioFailure.from_error(e))

        driver = SteppingDriver(adapter, job.descriptor, job.parameters, job.site, job.soil, job.weather)
        result = driver.run()
        if not result.succeeded:
            self.logger.error(f"Scenario {job.descriptor} failed: {result.failure.error}")
        return result

    def run(self, jobs: Iterable[ScenarioJob], max_workers: Optional[int] = None) -> BatchResult:
        """
        Run all jobs.

        Args:
            jobs: Scenario jobs
            max_workers: Worker threads; defaults to the configured value, then CPU count

        Returns:
            BatchResult with one result per job, in job order
        """
        jobs = list(jobs)
        max_workers = max_workers or self.config.runtime.max_workers or os.cpu_count() or 1
        self.logger.info(f"Running {len(jobs)} scenarios on {max_workers} workers")

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(self.run_job, jobs))

        batch = BatchResult(results)
        self.logger.info(f"Batch finished: {batch.summary()}")
        return batch
