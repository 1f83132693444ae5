"""
Helper modules for proxy session tools.
"""

from .unified_logger import get_logger, get_core_logger, get_client_logger, set_log_level

__all__ = [
    'get_logger',
    'get_core_logger',
    'get_client_logger',
    'set_log_level',
]
