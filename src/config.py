"""
Configuration module for the PokerNow advisor
Centralizes all settings with environment overrides, JSON overlay and validation
"""

import json
import logging
import os
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any

from core.errors import ConfigurationError


def _safe_int_env(name: str, default: int, min_val: int = None, max_val: int = None) -> int:
    """
    Safely parse integer environment variable with bounds.
    Falls back to default on invalid values.
    """
    logger_local = logging.getLogger(__name__)
    try:
        value = int(os.getenv(name, str(default)))
        if min_val is not None:
            value = max(min_val, value)
        if max_val is not None:
            value = min(max_val, value)
        return value
    except (ValueError, TypeError):
        logger_local.warning(f"Invalid {name}, using default {default}")
        return default


def _safe_float_env(name: str, default: float, min_val: float = None) -> float:
    """Float counterpart of _safe_int_env"""
    logger_local = logging.getLogger(__name__)
    try:
        value = float(os.getenv(name, str(default)))
        if min_val is not None:
            value = max(min_val, value)
        return value
    except (ValueError, TypeError):
        logger_local.warning(f"Invalid {name}, using default {default}")
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


class Config:
    """
    Configuration management with:
    - Class-level defaults per section
    - Environment variable overrides
    - JSON file overlay
    - Validation
    """

    # ========== Game Settings ==========
    GAME = {
        'game_id': os.getenv('POKERNOW_GAME_ID', ''),
        'hero_name': os.getenv('POKERNOW_HERO', ''),
        # Blinds normally come from the table; these are used until it reports them
        'small_blind': Decimal('0'),
        'big_blind': Decimal('0'),
        'variant': 'NLH',
        'max_turn_length': _safe_float_env('POKERNOW_MAX_TURN_LENGTH', 30.0, 1.0),
    }

    # ========== Hand Loop Settings ==========
    BOT = {
        'automated': _env_flag('POKERNOW_AUTOMATED'),
        'observe_only': False,
        'confirm_automated_actions': True,
        'retries': _safe_int_env('POKERNOW_RETRIES', 2, 0, 10),
        'retry_delay': 1.0,
        'max_history_messages': 10,
        'settle_delay': 2.0,
        'ingest_retries': 3,
        'ingest_retry_delay': 0.5,
        'poll_interval': 1.0,
        'max_poll_interval': 8.0,
        'hand_wait_timeout': 0.0,
        'hand_end_timeout': 30.0,
        'max_hands': None,
    }

    # ========== Oracle Settings ==========
    ORACLE = {
        'provider': os.getenv('POKERNOW_ORACLE', 'manual'),
        'model_name': os.getenv('POKERNOW_MODEL', 'gpt-4o-mini'),
        'playstyle': os.getenv('POKERNOW_PLAYSTYLE', 'neutral'),
        'api_key': os.getenv('OPENAI_API_KEY', ''),
        'base_url': os.getenv('OPENAI_BASE_URL', 'https://api.openai.com/v1'),
        'timeout': _safe_float_env('POKERNOW_ORACLE_TIMEOUT', 30.0, 1.0),
        'temperature': 0.2,
    }

    # ========== Player Statistics ==========
    LEDGER = {
        'enabled': True,
        'backend': os.getenv('POKERNOW_LEDGER', 'sqlite'),
        'db_path': os.getenv(
            'POKERNOW_LEDGER_DB',
            str(Path.home() / '.pokernow_advisor' / 'player_stats.db'),
        ),
    }

    # ========== Logging Settings ==========
    LOGGING = {
        'level': os.getenv('LOG_LEVEL', 'INFO'),
        'file_level': 'DEBUG',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
        'max_bytes': 5 * 1024 * 1024,
        'backup_count': 3,
        'json_logs': _env_flag('POKERNOW_JSON_LOGS'),
        'performance_logs': True,
    }

    VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
    VALID_LEDGER_BACKENDS = ('sqlite', 'memory')

    # ========== File Settings ==========
    @classmethod
    def get_files_config(cls) -> dict:
        """Get file configuration with lazy initialization"""
        base_dir = Path(os.getenv('POKERNOW_HOME', str(Path.home() / '.pokernow_advisor')))
        return {
            'config_dir': base_dir,
            'log_dir': Path(os.getenv('POKERNOW_LOG_DIR', str(base_dir / 'logs'))),
            'recordings_dir': Path(os.getenv('POKERNOW_RECORDINGS_DIR', str(base_dir / 'recordings'))),
        }

    def __init__(
        self,
        config_file: str | None = None,
        validate: bool = True,
        ensure_directories: bool = True,
    ):
        """
        Initialize configuration with optional validation

        Args:
            config_file: Optional path to JSON config file
            validate: Whether to validate configuration on init
            ensure_directories: Create required directories on init
        """
        self._lock = threading.RLock()
        self._files_config: dict | None = None
        self.config_file = config_file
        self._custom_settings: dict[str, dict] = {}
        self._logger = None

        if ensure_directories:
            self.ensure_directories()

        if config_file:
            self.load_from_file(config_file)

        if validate:
            self.validate()

    @property
    def FILES(self) -> dict:
        """Cached file configuration"""
        with self._lock:
            if self._files_config is None:
                self._files_config = self.get_files_config()
            return self._files_config

    def ensure_directories(self) -> dict[str, bool]:
        """Ensure the config and log directories exist, track success."""
        status: dict[str, bool] = {}
        logger_local = self._logger or logging.getLogger(__name__)
        for key in ('config_dir', 'log_dir'):
            path = Path(self.FILES[key])
            try:
                path.mkdir(parents=True, exist_ok=True)
                status[key] = path.is_dir()
            except OSError as e:
                logger_local.warning(f"Could not create {key}: {e}")
                status[key] = False
        self._directory_status = status
        return status

    def section(self, name: str) -> dict:
        """Section defaults merged with custom settings"""
        with self._lock:
            base = getattr(self, name.upper(), None)
            merged = dict(base) if isinstance(base, dict) else {}
            merged.update(self._custom_settings.get(name.lower(), {}))
            return merged

    def validate(self):
        """
        Validate all configuration values

        Raises:
            ConfigurationError: If configuration is invalid
        """
        errors = []
        game = self.section('game')
        bot = self.section('bot')
        oracle = self.section('oracle')
        ledger = self.section('ledger')
        logging_cfg = self.section('logging')

        # Game
        if not game.get('hero_name') and not bot.get('observe_only'):
            errors.append("hero_name is required unless observe_only is set")
        for key in ('small_blind', 'big_blind'):
            if Decimal(str(game.get(key) or 0)) < 0:
                errors.append(f"{key} cannot be negative")
        if float(game.get('max_turn_length', 0)) <= 0:
            errors.append("max_turn_length must be positive")

        # Hand loop
        if int(bot.get('retries', 0)) < 0:
            errors.append("retries cannot be negative")
        if int(bot.get('max_history_messages', 0)) < 0:
            errors.append("max_history_messages cannot be negative")
        if int(bot.get('ingest_retries', 0)) < 0:
            errors.append("ingest_retries cannot be negative")
        for key in ('retry_delay', 'settle_delay', 'ingest_retry_delay', 'hand_wait_timeout'):
            if float(bot.get(key, 0)) < 0:
                errors.append(f"{key} cannot be negative")
        if float(bot.get('poll_interval', 0)) <= 0:
            errors.append("poll_interval must be positive")
        if float(bot.get('max_poll_interval', 0)) < float(bot.get('poll_interval', 0)):
            errors.append("max_poll_interval must be >= poll_interval")
        if bot.get('max_hands') is not None and int(bot['max_hands']) < 1:
            errors.append("max_hands must be at least 1")

        # Oracle
        from bot.oracles import PLAYSTYLE_PROMPTS, list_oracles

        if oracle.get('provider') not in list_oracles():
            errors.append(f"Invalid oracle: {oracle.get('provider')}")
        if oracle.get('playstyle') not in PLAYSTYLE_PROMPTS:
            errors.append(f"Invalid playstyle: {oracle.get('playstyle')}")
        if oracle.get('provider') == 'api' and not oracle.get('api_key'):
            errors.append("api_key is required for the api oracle")
        if oracle.get('provider') == 'manual' and bot.get('automated'):
            errors.append("The manual oracle cannot be used in automated mode")
        if float(oracle.get('timeout', 0)) <= 0:
            errors.append("Oracle timeout must be positive")

        # Ledger
        if ledger.get('backend') not in self.VALID_LEDGER_BACKENDS:
            errors.append(f"Invalid ledger backend: {ledger.get('backend')}")

        # Logging
        if str(logging_cfg.get('level', '')).upper() not in self.VALID_LOG_LEVELS:
            errors.append(f"Invalid log level: {logging_cfg.get('level')}")

        if hasattr(self, '_directory_status'):
            for key, success in self._directory_status.items():
                if not success:
                    errors.append(f"Required directory {key} could not be created")

        if errors:
            raise ConfigurationError("Configuration validation failed:\n" + "\n".join(errors))

    def load_from_file(self, filepath: str | Path):
        """
        Load configuration from JSON file

        The file holds lowercase section names, e.g.
        {"game": {"hero_name": "me"}, "oracle": {"provider": "api"}}

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise ConfigurationError(f"Config file not found: {filepath}")

        try:
            with open(filepath, encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error loading config file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must hold a JSON object: {filepath}")

        with self._lock:
            for section, values in data.items():
                if not isinstance(values, dict):
                    raise ConfigurationError(f"Section '{section}' must be an object")
                target = self._custom_settings.setdefault(section.lower(), {})
                target.update(self._deserialize_dict(values))

        if self._logger:
            self._logger.info(f"Loaded configuration from {filepath}")

    def _deserialize_dict(self, d: dict) -> dict:
        """Restore Decimal blinds from JSON numbers/strings"""
        result = {}
        for key, value in d.items():
            if key in ('small_blind', 'big_blind') and value is not None:
                result[key] = Decimal(str(value))
            else:
                result[key] = value
        return result

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get configuration value with support for custom settings

        Args:
            section: Configuration section name
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        return self.section(section).get(key, default)

    def set(self, section: str, key: str, value: Any):
        """
        Set a configuration value

        Args:
            section: Configuration section name
            key: Configuration key
            value: Value to set
        """
        with self._lock:
            self._custom_settings.setdefault(section.lower(), {})[key] = value

    def set_logger(self, logger):
        """Set logger instance after logger initialization"""
        self._logger = logger

    def to_dict(self) -> dict:
        """Export effective configuration (API key masked)"""
        result = {
            name.lower(): self.section(name)
            for name in ('GAME', 'BOT', 'ORACLE', 'LEDGER', 'LOGGING')
        }
        if result['oracle'].get('api_key'):
            result['oracle']['api_key'] = '***'
        result['files'] = {k: str(v) for k, v in self.FILES.items()}
        return result


# Create global configuration instance.
#
# Keep this import side-effect free. Directory creation and validation happen
# in the CLI startup path (see `src/main.py`).
config = Config(validate=False, ensure_directories=False)
