"""
Core infrastructure shared by all marketplace apps.

Services (import from core.services):
    - ServiceResult: Standard result wrapper
    - BaseService: Logging and transaction helpers

Exceptions (import from core.exceptions):
    - BaseApplicationError and its HTTP-mapped subclasses

Models (import from core.models):
    - BaseModel (core.models), UUIDPrimaryKeyMixin (core.model_mixins)

Note:
    Models are NOT imported here to avoid AppRegistryNotReady errors.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .services import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "ExternalServiceError",
]
