"""Provisioning of the Hookdeck connections and the Chargebee webhook endpoint."""

from .cleanup import CleanupReconciler, CleanupResult
from .config import CleanupConfig, ConfigError, ProvisioningConfig
from .errors import HttpRequestError, MalformedResponseError, ProvisioningError
from .reconciler import EndpointResult, ReconcileResult, Reconciler

__all__ = [
    "CleanupConfig",
    "CleanupReconciler",
    "CleanupResult",
    "ConfigError",
    "EndpointResult",
    "HttpRequestError",
    "MalformedResponseError",
    "ProvisioningConfig",
    "ProvisioningError",
    "ReconcileResult",
    "Reconciler",
]
