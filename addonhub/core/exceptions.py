"""
Exceptions
Error types raised by addon services
"""
from typing import Optional


class AddonHubError(Exception):
    """Base class for addon engine errors"""


class ManifestFetchError(AddonHubError):
    """Manifest could not be fetched or parsed"""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        message = f"Failed to fetch addon manifest from {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidManifestError(AddonHubError):
    """Manifest does not yield a usable addon id"""


class AddonRequestError(AddonHubError):
    """Addon HTTP request failed after all retries"""

    def __init__(self, url: str, reason: str = "", status: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status = status
        message = f"Request to {url} failed"
        if status is not None:
            message = f"{message} with status {status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StorageError(AddonHubError):
    """Persisted state could not be read"""
