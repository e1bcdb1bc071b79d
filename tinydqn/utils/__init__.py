"""Utility modules for tinydqn."""

from .logger import get_logger, setup_logging, ensure_logging, LogLevel

__all__ = ['get_logger', 'setup_logging', 'ensure_logging', 'LogLevel']
