class PreconditionError(RuntimeError):
    """Raised when a caller breaks the expected call order (a programming error)."""


class DetectorLoadError(RuntimeError):
    """Raised when the cascade classifier resource cannot be loaded."""
