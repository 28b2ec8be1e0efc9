# rotator/core/exceptions.py


class RotatorError(Exception):
    """Base class for all log rotator errors."""


class ConfigurationError(RotatorError):
    """Raised when the rotation configuration cannot be loaded or is invalid."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")


class RotationError(RotatorError):
    """Raised when a single file could not be rotated."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Rotation failed for {file_path}: {reason}")


class RotationSuffixExhaustedError(RotationError):
    """Raised when every numeric suffix up to the cap is already taken."""

    def __init__(self, file_path: str, max_suffix: int):
        self.max_suffix = max_suffix
        super().__init__(file_path, f"too many rotations (suffixes .1 to .{max_suffix} in use)")


class CompressionError(RotatorError):
    """Raised when a rotated file could not be gzip-compressed."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Compression failed for {file_path}: {reason}")
