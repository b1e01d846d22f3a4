"""
Engine configuration (``stock_config``).

Usage::

    from stock_config import load_config

    config = load_config()                 # defaults + $STOCK_CONFIG_FILE + env
    config = load_config("ops/stock.yaml")  # explicit file
"""

from stock_config.loader import DEFAULTS_PATH, load_config, load_yaml_file
from stock_config.schema import EngineConfig, OversellPolicy

__all__ = [
    "DEFAULTS_PATH",
    "EngineConfig",
    "OversellPolicy",
    "load_config",
    "load_yaml_file",
]
