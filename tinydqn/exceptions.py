"""Exception types raised by tinydqn."""


class TinyDQNError(Exception):
    """Base class for all tinydqn errors."""


class DimensionError(TinyDQNError, ValueError):
    """
    A vector length or network topology does not match what was expected.

    Raised before any state is mutated, so the failing call has no effect.
    """


class ConfigurationError(TinyDQNError, ValueError):
    """An invalid hyperparameter was supplied at construction time."""


class CheckpointError(TinyDQNError):
    """A checkpoint file could not be read or does not describe a network."""
