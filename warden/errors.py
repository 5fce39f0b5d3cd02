"""
Warden - Errors
===============
Configuration problems refuse to boot. Missing roles are a hard stop.
Unknown permissions are never raised: they resolve to a deny.
"""

from __future__ import annotations

from typing import Any

from django.core.exceptions import ImproperlyConfigured, ObjectDoesNotExist


class WardenError(Exception):
    """Base class for authorization engine errors."""


class ServiceConfigurationError(ImproperlyConfigured):
    """
    Raised when a configured service cannot be loaded or does not
    implement its contract.

    The message names both the config key and the expected contract.
    """

    def __init__(self, config_key: str, contract: str, detail: str = ""):
        self.config_key = config_key
        self.contract = contract
        self.detail = detail
        message = (
            f"The configured service for 'WARDEN[\"SERVICES\"][\"{config_key}\"]' "
            f"must implement {contract}."
        )
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class RoleNotFoundError(WardenError, ObjectDoesNotExist):
    """Raised when a role reference does not match a provisioned role."""

    def __init__(self, reference: Any):
        self.reference = reference
        super().__init__(f"Role '{reference}' does not exist.")
