from .loader import load_settings
from .schema import ConfigurationError, Settings

__all__ = ["ConfigurationError", "Settings", "load_settings"]
