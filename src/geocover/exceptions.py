"""Exceptions raised by the cell codec and covering."""


class GeocoverError(Exception):
    """Base error for this package."""
    pass


class LevelOutOfRangeError(GeocoverError, ValueError):
    """Raised when a cell level falls outside [0, 30]."""

    def __init__(self, level: int, max_level: int = 30):
        super().__init__(
            f"Cell level must be between 0 and {max_level}, got {level}. "
            "Common values: 10 (city ~100km), 16 (neighborhood ~600m), 20 (building ~75m)"
        )
        self.level = level


class InvalidTokenError(GeocoverError, ValueError):
    """Raised when a token is empty, not hexadecimal, or not a valid cell id."""
    pass


class InvalidCellOperationError(GeocoverError, RuntimeError):
    """Raised when an operation has no answer for the given cell (e.g. parent of level 0)."""
    pass


class CoveringTooLargeError(InvalidCellOperationError):
    """Raised before a covering starts when its estimated cell count exceeds the cap."""

    def __init__(self, message: str, estimated_cells: int):
        super().__init__(message)
        self.estimated_cells = estimated_cells
