"""
Error taxonomy for the trip creation pipeline.

Each terminal failure carries the pipeline stage it came from so callers
and tests can tell them apart, even though the HTTP body stays generic.
"""

from enum import Enum


class FailureStage(str, Enum):
    VALIDATION = "validation"
    GENERATION = "generation"
    PARSE = "parse"
    PERSISTENCE = "persistence"


class TripPipelineError(Exception):
    """Base class for terminal trip pipeline failures."""

    stage: FailureStage

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TripValidationError(TripPipelineError):
    """A required request field is missing or invalid."""

    stage = FailureStage.VALIDATION

    def __init__(self, message: str = "Missing required fields", errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class UpstreamGenerationError(TripPipelineError):
    """The generative-text service failed, timed out or returned nothing."""

    stage = FailureStage.GENERATION


class MalformedItineraryError(TripPipelineError):
    """Model output could not be parsed as a JSON itinerary."""

    stage = FailureStage.PARSE


class PersistenceError(TripPipelineError):
    """The document store rejected or could not receive the trip record."""

    stage = FailureStage.PERSISTENCE
