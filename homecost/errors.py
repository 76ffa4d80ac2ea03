"""Exception types raised by the cost engine."""


class HomecostError(Exception):
    """Base class for all homecost errors."""


class InvalidInput(HomecostError, ValueError):
    """A profile value is missing, out of range, or outside its domain."""


class UnknownRegion(HomecostError, ValueError):
    """No rule table exists for the requested region code."""


class RuleConflict(HomecostError):
    """Two rules in one region claim the same name or tie-break priority."""
