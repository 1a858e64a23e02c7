from utils.error.base_custom_error import BaseCustomError


class CloudEyeError(BaseCustomError):
    """Base exception for CloudEye domain errors."""


class MetricExportError(CloudEyeError):
    """Raised when one stage of a namespace export fails."""

    def __init__(self, message: str, namespace: str, operation: str, **metadata):
        super().__init__(message, namespace=namespace, operation=operation, **metadata)
        self.namespace = namespace
        self.operation = operation
