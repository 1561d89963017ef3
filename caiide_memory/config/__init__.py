"""Configuration module for caiide-memory."""

from caiide_memory.config.loader import get_config_path, load_config, save_config
from caiide_memory.config.schema import ClientInfoConfig, Config, WorkerConfig

__all__ = [
    "ClientInfoConfig",
    "Config",
    "WorkerConfig",
    "get_config_path",
    "load_config",
    "save_config",
]
