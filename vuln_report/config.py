# vuln_report/config.py
import logging
from pathlib import Path

import yaml

from .fetcher import CVE_API_BASE_URL
from .models import EXCLUDED_DIR, REPORTS_DIR

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULTS = {
    "reports_dir": REPORTS_DIR,
    "excluded_dir": EXCLUDED_DIR,
    "cve_api_url": CVE_API_BASE_URL,
    "ai": {},
    "api_keys": {},
}


def load_config(config_path: str = CONFIG_FILENAME) -> dict:
    """Loads the YAML config file, falling back to defaults for anything missing."""
    config = dict(DEFAULTS)
    path = Path(config_path)
    if not path.is_file():
        logger.debug(f"Configuration file '{config_path}' not found. Using defaults.")
        return config
    try:
        with open(path, 'r', encoding='utf-8') as f:
            loaded_yaml = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load configuration file '{path.resolve()}': {e}. Using defaults.")
        return config
    if isinstance(loaded_yaml, dict):
        config.update(loaded_yaml)
        logger.info(f"Loaded configuration from {path.resolve()}")
    elif loaded_yaml is not None:
        logger.warning(f"Config file '{path.resolve()}' does not contain a valid dictionary structure.")
    return config


def setup_logging(verbose: bool = False):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
