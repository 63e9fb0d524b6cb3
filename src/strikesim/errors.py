"""Error taxonomy for engine construction and simulation calls.

All errors are raised synchronously to the immediate caller. None of them is
transient, so nothing here is retried.
"""


class SimulationError(Exception):
    """Base class for every error raised by strikesim."""

    code = "simulation_error"


class ParseError(SimulationError):
    """Inputs or target could not be parsed into value objects."""

    code = "parse_error"


class ValidationError(SimulationError):
    """A request is well-formed but incomplete (e.g. ``above`` without ``K``)."""

    code = "validation_error"


class InvalidTargetKind(SimulationError):
    """Target discriminator is not one of the supported kinds."""

    code = "invalid_target_kind"


class SerializationError(SimulationError):
    """A computed result could not be encoded for the caller."""

    code = "serialization_error"
