"""Error taxonomy. Each class carries the process exit code main() uses."""

import config


class ResampleError(Exception):
    exit_code = config.EXIT_FAILURE


class UsageError(ResampleError):
    """Wrong argument count or an invalid scale request."""

    exit_code = config.EXIT_USAGE


class DegenerateGeometryError(ResampleError):
    """The requested resample would produce (or needs) an empty image."""

    exit_code = config.EXIT_USAGE


class FileOpenError(ResampleError):
    pass


class FormatError(ResampleError, ValueError):
    """Input bytes are not an 8-bit P6 image."""


class AllocationError(ResampleError, MemoryError):
    pass


__all__ = [
    "ResampleError",
    "UsageError",
    "DegenerateGeometryError",
    "FileOpenError",
    "FormatError",
    "AllocationError",
]
