"""Boundary helper turning raised errors into failed results"""

from typing import Any, Callable

from ..models.results import OperationResult
from .exceptions import AuthError, StorageError
from .logger import get_logger

logger = get_logger(__name__)

SAVE_FAILED_MESSAGE = "Changes could not be saved, please try again"


def run_operation(operation: Callable[..., OperationResult], *args: Any) -> OperationResult:
    """Call operation, converting taxonomy and storage errors into results"""
    try:
        return operation(*args)
    except AuthError as e:
        return OperationResult.fail(e.message, error=e.code)
    except StorageError as e:
        logger.error("Storage write failed", operation=operation.__name__.lstrip("_"), error=str(e))
        return OperationResult.fail(SAVE_FAILED_MESSAGE, error="storage_error")
