"""Exception taxonomy for manifest, strategy, build, and inspection failures."""

from __future__ import annotations


class LambdaPackError(Exception):
    """Base class for all lambda_pack errors."""


class ManifestNotFoundError(LambdaPackError, FileNotFoundError):
    """Raised when the dependency manifest path does not exist."""

    def __init__(self, path: object) -> None:
        super().__init__(f"Manifest not found: {path}")
        self.path = path


class ManifestParseError(LambdaPackError, ValueError):
    """Raised when manifest content or its entry point is unusable."""


class UnknownStrategyError(LambdaPackError, ValueError):
    """Raised for strategy identifiers outside the catalog."""

    def __init__(self, identifier: str, known: tuple[str, ...]) -> None:
        super().__init__(f"Unknown strategy '{identifier}'. Expected one of: {', '.join(known)}")
        self.identifier = identifier
        self.known = known


class WorkDirConflictError(LambdaPackError):
    """Raised when two runs would share a working directory."""


class BuildFailureError(LambdaPackError):
    """Raised when a strategy build step exits non-zero or times out."""

    def __init__(
        self,
        message: str,
        *,
        strategy_id: str | None = None,
        stderr: str = "",
        returncode: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.strategy_id = strategy_id
        self.stderr = stderr
        self.returncode = returncode
        self.timed_out = timed_out


class ArtifactMissingError(LambdaPackError):
    """Raised when a nominally successful build produced no usable output."""
