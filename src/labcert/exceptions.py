"""Exception hierarchy for labcert."""


class LabCertError(Exception):
    """Base exception for all labcert errors."""


class SectionBuildError(LabCertError):
    """Raised when a named report section cannot be built from the record."""

    def __init__(self, section: str, message: str = "") -> None:
        super().__init__(f"{section}: {message}" if message else section)
        self.section = section


class RenderingError(LabCertError):
    """Raised when the rendering backend fails to paint a document plan."""


class AssetNotFoundError(LabCertError):
    """Raised when a logo or other binary asset is missing from its store."""


class BatchGenerationError(LabCertError):
    """Raised when a batch run finishes without storing a single report."""
