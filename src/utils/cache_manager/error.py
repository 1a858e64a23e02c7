from utils.error.base_custom_error import BaseCustomError


class CacheManagerError(BaseCustomError):
    """
    Base exception for cache manager-related errors.
    """


class CacheSweeperError(CacheManagerError):
    """
    Exception for background sweeper lifecycle errors.
    """
