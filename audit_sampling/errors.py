"""Error kinds raised by the sampling engine.

Script-level functions raise these; ``SamplingService`` turns them into
``EngineResult.error`` values so nothing escapes the engine boundary.
"""


class SamplingError(ValueError):
    """Base class for all engine errors."""

    kind = "sampling_error"


class InvalidConfiguration(SamplingError):
    """Malformed parameters, unknown columns or a non-positive override."""

    kind = "invalid_configuration"


class EmptyPopulation(InvalidConfiguration):
    """The population has no rows.

    A configuration error as well: there is nothing to size a sample against.
    """

    kind = "empty_population"


class EmptyEligibleSet(InvalidConfiguration):
    """Exclusion filters removed every row."""

    kind = "empty_eligible_set"


class InvalidState(SamplingError):
    """Operation attempted out of lifecycle order."""

    kind = "invalid_state"


class AlreadyLocked(SamplingError):
    """The slot holds a locked sample and can no longer change."""

    kind = "already_locked"
