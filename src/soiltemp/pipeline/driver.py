"""
Stepping driver: runs one model over one scenario's weather, day by day.

    UNINITIALIZED -> RUNNING -> COMPLETED
          \\            \\
           +-> FAILED <--+

Output is all-or-nothing: a failure on any day discards the records
produced so far and reports the failure with the scenario's identity.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence, Union

from soiltemp.core.exceptions import (
    ErrorContext, GeneralStepFailure, MissingDataError, SoilTempError, handle_exception
)
from soiltemp.core.types import DriverStatus, ScenarioDescriptor, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.adapters import ModelAdapter
from soiltemp.physics.adapters.base import DailyOutputs
from soiltemp.pipeline.unifier import DailyOutputRecord, unify


@dataclass(frozen=True)
class ScenarioFailure:
    """Structured report of a scenario that did not complete"""
    scenario: str
    model_id: str
    kind: str
    message: str
    date: Optional[str] = None
    error: Optional[SoilTempError] = None

    @classmethod
    def from_error(cls, error: SoilTempError) -> "ScenarioFailure":
        context = error.context
        return cls(
            scenario=context.scenario_id,
            model_id=context.model_id,
            kind=type(error).__name__,
            message=error.message,
            date=context.date,
            error=error,
        )


@dataclass(frozen=True)
class ScenarioResult:
    """Outcome of one scenario: canonical records or a failure"""
    descriptor: ScenarioDescriptor
    model_id: str
    outcome: Union[List[DailyOutputRecord], ScenarioFailure]

    @property
    def succeeded(self) -> bool:
        return not isinstance(self.outcome, ScenarioFailure)

    @property
    def records(self) -> List[DailyOutputRecord]:
        if not self.succeeded:
            return []
        return self.outcome

    @property
    def failure(self) -> Optional[ScenarioFailure]:
        return None if self.succeeded else self.outcome

    def raise_for_failure(self) -> "ScenarioResult":
        """Re-raise the underlying error of a failed scenario"""
        if self.failure is not None:
            raise self.failure.error
        return self


def validate_forcing_sequence(weather: Sequence[WeatherRecord]) -> None:
    """Non-empty and strictly consecutive days"""
    if not weather:
        raise MissingDataError("Weather sequence is empty", ErrorContext(component="forcing"))

    one_day = timedelta(days=1)
    for previous, current in zip(weather, weather[1:]):
        if current.date - previous.date != one_day:
            raise MissingDataError(
                f"Weather is not consecutive: {previous.date} followed by {current.date}",
                ErrorContext(date=current.date.isoformat(), component="forcing"),
            )


class SteppingDriver:
    """
    Threads an adapter's state through a scenario's weather sequence.

    A driver is single use: construct one per scenario run.
    """

    def __init__(
        self,
        adapter: ModelAdapter,
        descriptor: ScenarioDescriptor,
        scenario: ScenarioParameters,
        site: SiteParameters,
        soil: SoilProfile,
        weather: Sequence[WeatherRecord],
    ):
        self.adapter = adapter
        self.descriptor = descriptor
        self.scenario = scenario
        self.site = site
        self.soil = soil
        self.weather = list(weather)
        self.status = DriverStatus.UNINITIALIZED
        self.days_completed = 0
        self.logger = logging.getLogger("soiltemp.pipeline.driver")

    @property
    def model_id(self) -> str:
        return self.adapter.model_id

    def run(self) -> ScenarioResult:
        """Run every day; failures are returned, not raised"""
        if self.status is not DriverStatus.UNINITIALIZED:
            raise RuntimeError(f"Driver for {self.descriptor} already ran (status {self.status.value})")

        self.logger.info(f"Starting {self.model_id} for scenario {self.descriptor} ({len(self.weather)} days)")
        try:
            records = self._run()
        except Exception as exc:
            self.status = DriverStatus.FAILED
            error = handle_exception(exc)
            error.with_context(scenario_id=self.descriptor.key, model_id=self.model_id)
            if error is not exc:
                error.__cause__ = exc
            self.logger.debug(f"Scenario {self.descriptor} failed after {self.days_completed} days: {error}")
            return ScenarioResult(self.descriptor, self.model_id, ScenarioFailure.from_error(error))

        self.status = DriverStatus.COMPLETED
        self.logger.info(f"Completed {self.model_id} for scenario {self.descriptor}: {len(records)} records")
        return ScenarioResult(self.descriptor, self.model_id, records)

    def _run(self) -> List[DailyOutputRecord]:
        validate_forcing_sequence(self.weather)

        state = self._call(self.weather[0].date, self.adapter.initialize,
                           self.site, self.soil, self.weather[0], self.scenario)
        self.status = DriverStatus.RUNNING

        records: List[DailyOutputRecord] = []
        for forcing in self.weather:
            state, outputs = self._call(forcing.date, self.adapter.step, state, forcing)
            self._check_finite(outputs)
            records.extend(unify(outputs))
            self.days_completed += 1
        return records

    def _call(self, day: date, func, *args):
        """Invoke an adapter method, attaching the day to any failure"""
        try:
            return func(*args)
        except Exception as exc:
            error = handle_exception(exc, ErrorContext(date=day.isoformat(), component="adapter"))
            if error is exc:
                raise
            raise error from exc

    @staticmethod
    def _check_finite(outputs: DailyOutputs) -> None:
        if not all(math.isfinite(value) for value in outputs.values()):
            raise GeneralStepFailure(
                "Model produced non-finite temperatures",
                ErrorContext(date=outputs.date.isoformat(), component="adapter"),
            )
