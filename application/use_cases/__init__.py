"""Application use case implementations."""

from .instances import InstanceManagementUseCase
from .lifecycle import InstanceLifecycleUseCase
from .review import CodeReviewUseCase

__all__ = [
    "InstanceLifecycleUseCase",
    "InstanceManagementUseCase",
    "CodeReviewUseCase",
]
