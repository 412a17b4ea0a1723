"""
soiltemp Pipeline Module.

Runs model adapters over scenarios and unifies their output.
"""
from soiltemp.pipeline.unifier import DailyOutputRecord, unify, records_to_frame
from soiltemp.pipeline.driver import SteppingDriver, ScenarioResult, ScenarioFailure
from soiltemp.pipeline.batch import BatchRunner, BatchResult, ScenarioJob

__all__ = [
    "DailyOutputRecord",
    "unify",
    "records_to_frame",
    "SteppingDriver",
    "ScenarioResult",
    "ScenarioFailure",
    "BatchRunner",
    "BatchResult",
    "ScenarioJob",
]
