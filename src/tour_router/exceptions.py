"""Engine exceptions."""


class TourRoutingError(Exception):
    """Base class for errors raised by the routing engine."""


class ValidationError(TourRoutingError, ValueError):
    """Caller-supplied input violates a precondition (e.g. fewer than two fixed points)."""
