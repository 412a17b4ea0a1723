"""
Custom exception hierarchy for the soiltemp harness.
Every error carries an ErrorContext so failures can be reported with the
identity of the scenario and model that produced them.
"""
from typing import Optional, Any, Dict
from dataclasses import dataclass, replace

import numpy as np


@dataclass
class ErrorContext:
    """Context information for errors"""
    scenario_id: Optional[str] = None
    model_id: Optional[str] = None
    date: Optional[str] = None
    component: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class SoilTempError(Exception):
    """Base exception for all soiltemp errors"""

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def __str__(self) -> str:
        context_str = ""
        if self.context.scenario_id:
            context_str += f" [Scenario: {self.context.scenario_id}]"
        if self.context.model_id:
            context_str += f" [Model: {self.context.model_id}]"
        if self.context.date:
            context_str += f" [Date: {self.context.date}]"
        if self.context.component:
            context_str += f" [Component: {self.context.component}]"

        return f"{self.__class__.__name__}: {self.message}{context_str}"

    def with_context(self, **fields) -> "SoilTempError":
        """Fill in context fields that are not already set, returning self"""
        updates = {
            key: value for key, value in fields.items()
            if value is not None and getattr(self.context, key, None) is None
        }
        if updates:
            self.context = replace(self.context, **updates)
        return self


class GridMismatchError(SoilTempError):
    """Depth grid is invalid or two grids cannot be remapped"""
    pass


class MissingParameterError(SoilTempError):
    """Required site or soil parameter is absent at initialization"""
    pass


class MissingDataError(SoilTempError):
    """Forcing data required for a day is absent"""
    pass


class UnimplementedModelError(SoilTempError):
    """Requested model variant has no adapter"""
    pass


class GeneralStepFailure(SoilTempError):
    """Adapter-internal numerical failure"""
    pass


class ConfigurationError(SoilTempError):
    """Configuration error"""
    pass


def handle_exception(exc: Exception, context: Optional[ErrorContext] = None) -> SoilTempError:
    """
    Wrap generic exceptions in the SoilTempError hierarchy.
    Anything raised from inside a model that is not already ours is a
    numerical failure of that model.
    """
    if isinstance(exc, SoilTempError):
        if context is not None:
            exc.with_context(**vars(context))
        return exc

    error_map = {
        np.linalg.LinAlgError: GeneralStepFailure,
        FloatingPointError: GeneralStepFailure,
        ArithmeticError: GeneralStepFailure,
        ValueError: GeneralStepFailure,
        RuntimeError: GeneralStepFailure,
    }

    for exc_type, error_type in error_map.items():
        if isinstance(exc, exc_type):
            return error_type(f"{type(exc).__name__}: {exc}", context)

    return GeneralStepFailure(f"{type(exc).__name__}: {exc}", context)
