"""Application configuration for the translation syncer."""
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from i18n_syncer.logging_config import setup_logger

# Environment variables that override the YAML file, by config field.
ENV_OVERRIDES = {
    'spreadsheet_id': 'I18N_SYNCER_SPREADSHEET_ID',
    'credentials_path': 'I18N_SYNCER_CREDENTIALS',
    'translation_dir': 'I18N_SYNCER_TRANSLATION_DIR',
    'sheet_name': 'I18N_SYNCER_SHEET_NAME',
    'format_name': 'I18N_SYNCER_FORMAT',
    'main_language': 'I18N_SYNCER_MAIN_LANGUAGE',
}
CONFIG_FILE_ENV = 'I18N_SYNCER_CONFIG'


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    project_root: str

    # Spreadsheet access
    spreadsheet_id: Optional[str]
    credentials_path: str
    sheet_name: Optional[str]

    # Translation files
    translation_dir: str
    format_name: str
    main_language: str

    # Logging and output
    log_level: str
    log_file_path: Optional[str]
    log_to_console: bool
    show_progress: bool


def _compute_project_root() -> str:
    """The working directory is the project whose translations are synced."""
    return os.path.abspath(os.getcwd())


def _load_dotenv_files(project_root: str) -> Optional[str]:
    """Load the .env file of the project root, if any. Returns its path."""
    dotenv_path = os.path.join(project_root, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)
        return dotenv_path
    return None


def _load_yaml_config(project_root: str, config_file: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration file. Problems are reported on stderr and yield an empty config."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    explicit = config_file or os.environ.get(CONFIG_FILE_ENV)
    config_file = explicit or default_config_path

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config: Dict[str, Any] = {}
    try:
        if not os.path.exists(config_file):
            # Running without a config file is normal when everything comes from the CLI.
            if explicit:
                print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                      file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _apply_env_overrides(settings: Dict[str, Any]) -> None:
    for field_name, env_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            settings[field_name] = value


def load_app_config(config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
    """
    Load configuration from config.yaml, the environment and command-line overrides.

    Precedence, lowest first: built-in defaults, YAML file, environment
    variables (also read from .env), ``overrides`` entries that are not None.

    Args:
        config_file: Explicit YAML file, otherwise $I18N_SYNCER_CONFIG or ./config.yaml.
        overrides: Field values from the command line.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()
    dotenv_path = _load_dotenv_files(project_root)
    config = _load_yaml_config(project_root, config_file)

    log_config = config.get('logging') or {}
    settings: Dict[str, Any] = {
        'spreadsheet_id': config.get('spreadsheet_id'),
        'credentials_path': config.get('credentials_path', './credentials.json'),
        'sheet_name': config.get('sheet_name'),
        'translation_dir': config.get('translation_dir', './translations'),
        'format_name': config.get('format', 'json'),
        'main_language': config.get('main_language', 'en'),
        'log_level': str(log_config.get('log_level', 'INFO')).upper(),
        'log_file_path': log_config.get('log_file_path', 'logs/i18n_syncer.log'),
        'log_to_console': log_config.get('log_to_console', True),
        'show_progress': config.get('show_progress', True),
    }
    _apply_env_overrides(settings)
    for field_name, value in (overrides or {}).items():
        if value is not None:
            settings[field_name] = value

    logger = setup_logger(settings['log_level'], settings['log_file_path'], settings['log_to_console'])
    if dotenv_path:
        logger.debug("Loaded environment variables from: %s", dotenv_path)

    return AppConfig(project_root=project_root, **settings)
