class StatfinError(Exception):
    """Base class for errors raised by the StatFin data layer."""


class TableFormatError(StatfinError):
    """A PxWeb response is not a well-formed JSON-stat 2.0 dataset."""
