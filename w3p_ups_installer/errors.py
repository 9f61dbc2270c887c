from __future__ import annotations


class InstallerError(Exception):
    """Fatal error for this run.

    ``step`` names the failed stage in the one-line operator diagnostic.
    """

    step = "installer"

    def __init__(self, message: str, *, step: str | None = None) -> None:
        super().__init__(message)
        if step is not None:
            self.step = step

    def diagnostic(self) -> str:
        return f"{self.step}: {self}"


class InsufficientPrivilege(InstallerError):
    step = "privilege"


class UnsupportedArchitecture(InstallerError):
    step = "architecture"


class ResolutionFailed(InstallerError):
    step = "network"


class FetchFailed(InstallerError):
    step = "network"


class ExtractFailed(InstallerError):
    step = "extraction"


class CopyFailed(InstallerError):
    step = "copy"


class ActivationFailed(InstallerError):
    step = "service"


class ConfigError(InstallerError):
    step = "configuration"
