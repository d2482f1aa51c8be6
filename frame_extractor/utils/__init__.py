from .logging import setup_logging
from .storage_fs import create_storage, write_bytes
from .yaml_config import check_missing_keys, load_config

__all__ = [
    # Logging
    "setup_logging",
    # Storage
    "create_storage",
    "write_bytes",
    # Config
    "load_config",
    "check_missing_keys",
]
