"""lendly_api."""

from .monitoring.logger import configure_logger

# Console logging with default settings; create_app reconfigures it from Settings
configure_logger()
