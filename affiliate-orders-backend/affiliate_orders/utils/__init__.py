"""
Utilities package initialization.
"""
from .logger import get_logger, log_business_event, log_performance, setup_logging
from .slug import merchant_slug

__all__ = ["get_logger", "log_business_event", "log_performance", "setup_logging", "merchant_slug"]
