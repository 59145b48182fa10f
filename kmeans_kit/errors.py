"""
Error types raised by kmeans_kit.

Each error carries the process exit code the CLI returns for it. Per-file
problems (DecodeError, ResizeError) are caught by the scanners and logged;
everything else propagates up to kmeans_kit.cli.main.
"""

from __future__ import annotations

EXIT_OK = 0
EXIT_UNKNOWN = 10


class KmeansKitError(Exception):
    exit_code = EXIT_UNKNOWN


class ArgumentError(KmeansKitError):
    """Malformed invocation or invalid configuration value."""

    exit_code = 1


class ModeError(ArgumentError):
    """Unknown mode selector."""

    exit_code = 2


class DirectoryError(KmeansKitError):
    """A required directory is missing or cannot be listed."""

    exit_code = 3


class NoInputError(KmeansKitError):
    """No qualifying images (or no training rows) to work with."""

    exit_code = 4


class DecodeError(KmeansKitError):
    """An image file is corrupt or in an unsupported format."""

    exit_code = 5


class ResizeError(DecodeError):
    exit_code = 6


class PersistenceError(KmeansKitError):
    """A centroid or training-set CSV cannot be read or written."""

    exit_code = 7


class StoreFormatError(PersistenceError):
    """A CSV row has the wrong number of fields or a non-numeric field."""


class RoutingError(KmeansKitError):
    """A cluster output directory cannot be created."""

    exit_code = 8


class ModelMismatchError(KmeansKitError):
    """Feature vector length does not match the stored model."""

    exit_code = 9
