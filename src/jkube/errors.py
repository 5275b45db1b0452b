"""
Exceptions raised by the resolution, naming and enrichment pipelines.
"""
from typing import Optional


class JKubeError(Exception):
    """
    Base class for all errors that abort a build step.
    """


class ConfigurationError(JKubeError, ValueError):
    """
    Raised for invalid or ambiguous user configuration.
    """


class StartOrderError(JKubeError, RuntimeError):
    """
    Raised when the start order of images cannot be resolved.
    """


class ResourceProcessingError(JKubeError, OSError):
    """
    Raised when a resource file cannot be processed.
    """
    def __init__(self, message: str, source_file: Optional[str] = None):
        super().__init__(message)
        self.source_file = source_file
