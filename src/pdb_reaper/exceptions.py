"""
Exception types for PDB Reaper
"""

from typing import Optional


class PdbReaperError(Exception):
    """Base class for all PDB Reaper failures"""


class ConfigError(PdbReaperError):
    """Invalid or unparseable configuration"""


class ClusterError(PdbReaperError):
    """A call against the Kubernetes API failed"""

    def __init__(self, message: str, operation: str = None, obj: str = None):
        super().__init__(message)
        self.operation = operation
        self.obj = obj


class SelectorError(PdbReaperError):
    """A structured label selector could not be rendered"""


class IntOrPercentError(PdbReaperError):
    """An int-or-percentage value could not be resolved"""


class MetricsError(PdbReaperError):
    """A metric could not be recorded"""


class ExecutionError(PdbReaperError):
    """A run aborted; stage is either 'scan' or 'reap'"""

    def __init__(self, message: str, stage: str, cause: Optional[BaseException] = None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.stage = stage
