"""Domain errors for MssqlMcpInstaller."""


class InstallerError(RuntimeError):
    """Raised when the installation cannot continue safely."""


class InstallationDeclined(Exception):
    """Raised when the operator declines to overwrite an existing installation."""


class MissingPrerequisiteError(InstallerError):
    pass


class CloneFailureError(InstallerError):
    pass


class BuildFailureError(InstallerError):
    pass


class InitialBuildFailureError(BuildFailureError):
    pass


class ArtifactNotFoundError(InitialBuildFailureError):
    """Raised when the build finished but no server entry point was found."""

    def __init__(self, message: str, candidates=()):
        super().__init__(message)
        self.candidates = list(candidates)


class RebuildFailureError(BuildFailureError):
    pass


class DownloadFailureError(InstallerError):
    pass


class EmptyDownloadError(DownloadFailureError):
    pass


class UnchangedDownloadError(DownloadFailureError):
    """Raised when a downloaded replacement is byte-identical to the file it replaces."""
