"""
Tests for the batch runner: isolation, ordering and tabular output.
"""
import logging

import pytest

from soiltemp.core.config import HarnessConfig
from soiltemp.core.exceptions import UnimplementedModelError
from soiltemp.core.types import ScenarioDescriptor, ScenarioParameters
from soiltemp.data.contracts import SiteParameters
from soiltemp.data.scenarios import ScenarioResolver
from soiltemp.pipeline.batch import BatchResult, BatchRunner, ScenarioJob


@pytest.fixture
def jobs(site, soil_profile, weather_year):
    resolver = ScenarioResolver(["site_a"], ["loam"], [0, 2, 7], [25, 75])
    weather = weather_year[:60]
    return [
        ScenarioJob(d, "swat", resolver.resolve(d), site, soil_profile, weather)
        for d in resolver.descriptors()
    ]


class TestBatchRunner:

    def test_all_jobs_complete_in_order(self, jobs):
        batch = BatchRunner().run(jobs, max_workers=3)

        assert len(batch.results) == len(jobs)
        assert [r.descriptor for r in batch.results] == [j.descriptor for j in jobs]
        assert len(batch.completed) == len(jobs)
        assert batch.failed == [] and batch.skipped == []

    def test_unimplemented_model_is_isolated(self, jobs, caplog):
        broken = ScenarioJob(
            ScenarioDescriptor("site_a", "loam", 0, 0), "ecosys", ScenarioParameters(),
            jobs[0].site, jobs[0].soil, jobs[0].weather,
        )
        mixed = jobs[:2] + [broken] + jobs[2:]

        with caplog.at_level(logging.WARNING, logger="soiltemp.pipeline.batch"):
            batch = BatchRunner().run(mixed, max_workers=4)

        assert len(batch.completed) == len(jobs)
        assert len(batch.skipped) == 1
        assert batch.failed == []
        skipped = batch.skipped[0]
        assert skipped.descriptor == broken.descriptor
        assert skipped.failure.kind == "UnimplementedModelError"
        assert skipped.failure.scenario == broken.descriptor.key
        with pytest.raises(UnimplementedModelError):
            skipped.raise_for_failure()
        for result in batch.completed:
            assert len(result.records) == 60 * 4
        assert any("Skipping scenario" in message for message in caplog.messages)

    def test_failed_scenario_does_not_affect_others(self, jobs, caplog):
        no_albedo = SiteParameters(site_id="site_a", latitude=42.0, annual_mean_temp=10.0)
        bad = ScenarioJob(
            ScenarioDescriptor("site_b", "loam", 0, 25), "swat", ScenarioParameters(),
            no_albedo, jobs[0].soil, jobs[0].weather,
        )

        with caplog.at_level(logging.ERROR, logger="soiltemp.pipeline.batch"):
            batch = BatchRunner().run([bad] + jobs, max_workers=2)

        assert len(batch.failed) == 1
        assert batch.failed[0].failure.kind == "MissingParameterError"
        assert len(batch.completed) == len(jobs)
        assert batch.summary() == {"total": len(jobs) + 1, "completed": len(jobs), "failed": 1, "skipped": 0}
        assert any("failed" in message for message in caplog.messages)

    def test_parallel_matches_sequential(self, jobs):
        sequential = BatchRunner().run(jobs, max_workers=1)
        parallel = BatchRunner().run(jobs, max_workers=4)

        for a, b in zip(sequential.results, parallel.results):
            assert a.records == b.records

    def test_default_workers_from_config(self, jobs):
        config = HarnessConfig.model_validate({"runtime": {"max_workers": 2}})

        batch = BatchRunner(config).run(jobs[:2])

        assert len(batch.completed) == 2

    def test_to_frame(self, jobs):
        batch = BatchRunner().run(jobs[:2], max_workers=2)

        df = batch.to_frame()

        assert len(df) == 2 * 60 * 4
        assert set(df["scenario"]) == {j.descriptor.key for j in jobs[:2]}
        assert set(df["model_id"]) == {"swat"}
        assert df["min_temp"].isna().all()

    def test_empty_frame(self):
        df = BatchResult().to_frame()

        assert df.empty
        assert {"scenario", "model_id", "mean_temp"} <= set(df.columns)
