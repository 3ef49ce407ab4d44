"""
Utility modules for the resume builder backend
"""
from .config_loader import AppConfig, load_app_config
from .retry import RetryExhaustedError, RetryPolicy, retry_async

__all__ = [
    'AppConfig',
    'load_app_config',
    'RetryExhaustedError',
    'RetryPolicy',
    'retry_async',
]
