"""Infrastructure layer for configuration, logging and storage adapters."""

from .config import ConfigManager, GateConfig
from .error_handler import AuditLogger, ErrorHandler
from .logging_config import configure_logging, configure_stderr_logging
from .repositories import InMemorySettingsRepository, YamlSettingsRepository

__all__ = [
    "ConfigManager",
    "GateConfig",
    "AuditLogger",
    "ErrorHandler",
    "configure_logging",
    "configure_stderr_logging",
    "InMemorySettingsRepository",
    "YamlSettingsRepository",
]
