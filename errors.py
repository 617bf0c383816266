# errors.py
"""
Error kinds raised by the distribution engine.

Only InvalidArgument is meant to fail fast. The other two describe local,
recoverable conditions: the orchestrator catches them, logs a warning and
carries on with the remaining particle configurations.
"""


class InvalidArgument(ValueError):
    """A numeric argument or configuration value is out of its valid domain."""


class IncompatibleConfiguration(RuntimeError):
    """A distributor cannot process the given particle configuration."""


class MissingResource(RuntimeError):
    """A distributor needs a resource (e.g. a distribution map) that is not set."""
