"""Error types raised by the update pipeline.

Every failure a package run can hit derives from SyncError, so the CLI can
catch one type at the per-package boundary and keep going with the next
package. Lower layers raise the specific kind; the pipeline re-raises it as
PackageFailed chained to the original cause.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all pkgbuild-sync failures."""


class ConfigMissing(SyncError):
    pass


class ConfigInvalid(SyncError):
    pass


class InvalidPattern(SyncError):
    pass


class StateCorrupt(SyncError):
    pass


class NetworkError(SyncError):
    pass


class ProtocolError(SyncError):
    """A tag provider answered with something we could not decode."""


class RecipeIOError(SyncError):
    pass


class MetadataInvalid(SyncError):
    """A .SRCINFO document is missing required base fields."""


class BuildToolError(SyncError):
    """An external build command failed.

    Attributes:
        program: Name of the command that failed (e.g. "makepkg").
        exit_code: Process exit status, or None if it could not be started.
    """

    def __init__(self, program: str, exit_code: int | None, message: str = "") -> None:
        self.program = program
        self.exit_code = exit_code
        if not message:
            message = f"{program!r} exited with exit code {exit_code}"
        super().__init__(message)


class VersionFormatError(SyncError):
    pass


class CheckoutError(SyncError):
    pass


class PublishError(SyncError):
    pass


class PackageFailed(SyncError):
    """Outermost error for a package, naming the stage that failed."""

    def __init__(self, package: str, stage: str) -> None:
        self.package = package
        self.stage = stage
        super().__init__(f"processing package {package} (stage: {stage})")


def format_error_chain(exc: BaseException) -> list[str]:
    """Render an exception and its causes, outermost first.

    Example:
        ["processing package foo (stage: metadata)",
         "caused by: 'makepkg' exited with exit code 4"]
    """
    lines = [str(exc) or type(exc).__name__]
    cause = exc.__cause__
    while cause is not None:
        lines.append(f"caused by: {str(cause) or type(cause).__name__}")
        cause = cause.__cause__
    return lines
