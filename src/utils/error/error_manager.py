from log_config import log_manager
from utils.error.base_custom_error import BaseCustomError

logger = log_manager.get_logger("ErrorManager")


class ApplicationError(BaseCustomError):
    """Raised once an unexpected top-level failure has been logged."""


def handle_generic_exception(exception: Exception, context_message: str, metadata: dict | None = None):
    """Logs an unexpected exception with context and re-raises it as an ApplicationError.

    :param exception: The exception raised.
    :param context_message: Custom message providing context for the error.
    :param metadata: Additional metadata (optional) for debugging purposes.
    """
    metadata_info = f" | Metadata: {metadata}" if metadata else ""
    logger.error(
        f"An error occurred: {context_message}{metadata_info} - {exception}",
        exc_info=True,
    )
    raise ApplicationError(context_message, **(metadata or {})) from exception
