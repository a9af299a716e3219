class Fracture2DError(Exception):
    """Base class for errors raised by fracture2d."""


class BeachlineError(Fracture2DError, RuntimeError):
    """
    Internal invariant of the beachline was violated during a sweep.
    Not recoverable: the computation that raised it is abandoned.
    """


class ConfigError(Fracture2DError, ValueError):
    """Invalid configuration value."""
