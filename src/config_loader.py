"""
Configuration loader for the Roku Local Remote Server
Loads and validates configuration from YAML files, then applies environment overrides
"""

import os
import yaml
import logging
from typing import Dict, Any, Optional
from pathlib import Path
from datetime import datetime
import pytz

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"

def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    config_path = config_path or os.environ.get('CONFIG_FILE', DEFAULT_CONFIG_PATH)
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        config = _apply_defaults(config)
        config = apply_env_overrides(config)

        # Validate after overrides so bad environment values are caught too
        _validate_config(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def _validate_config(config: Dict) -> None:
    """Validate value ranges of the configuration sections"""
    server = config['server']
    if not isinstance(server['port'], int) or not 0 < server['port'] < 65536:
        raise ValueError(f"server.port must be a valid TCP port, got {server['port']!r}")

    cors = config['cors']
    if not isinstance(cors['allowed_origins'], list):
        raise ValueError("cors.allowed_origins must be a list of origin patterns")

    discovery = config['discovery']
    for field in ('timeout_ms', 'max_timeout_ms', 'max_devices'):
        value = discovery[field]
        if not isinstance(value, int) or value <= 0:
            raise ValueError(f"discovery.{field} must be a positive integer, got {value!r}")
    if discovery['timeout_ms'] > discovery['max_timeout_ms']:
        raise ValueError("discovery.timeout_ms must not exceed discovery.max_timeout_ms")
    if not discovery['service_names']:
        raise ValueError("discovery.service_names is required and must not be empty")

    ecp = config['ecp']
    if not isinstance(ecp['port'], int) or not 0 < ecp['port'] < 65536:
        raise ValueError(f"ecp.port must be a valid TCP port, got {ecp['port']!r}")
    if not isinstance(ecp['timeout_ms'], int) or ecp['timeout_ms'] <= 0:
        raise ValueError(f"ecp.timeout_ms must be a positive integer, got {ecp['timeout_ms']!r}")

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    section_defaults = {
        'server': {
            'host': '0.0.0.0',
            'port': 3000,
            'debug': False
        },
        'cors': {
            'allowed_origins': ['http://localhost:*']
        },
        'discovery': {
            'timeout_ms': 5000,
            'max_timeout_ms': 30000,
            'max_devices': 10,
            'accept_bare_address_records': True,
            'service_marker': 'Roku',
            'service_names': ['_ecp-server._tcp.local.', '_http._tcp.local.'],
            'listen_port': 5353
        },
        'ecp': {
            'port': 8060,
            'timeout_ms': 5000
        },
        'frontend': {
            'static_dir': 'public'
        },
        'logging': {
            'level': 'INFO',
            'file': None,
            'console_output': True,
            'timezone': 'UTC'
        }
    }

    for section, defaults in section_defaults.items():
        if not config.get(section):
            config[section] = {}
        for key, default_value in defaults.items():
            if key not in config[section]:
                config[section][key] = default_value

    return config

def apply_env_overrides(config: Dict, environ: Optional[Dict[str, str]] = None) -> Dict:
    """Apply PORT, ALLOWED_ORIGINS, DISCOVERY_TIMEOUT and MAX_DISCOVERY_DEVICES overrides"""
    environ = os.environ if environ is None else environ

    if environ.get('PORT'):
        config['server']['port'] = _env_int('PORT', environ['PORT'])

    if environ.get('ALLOWED_ORIGINS'):
        origins = [o.strip() for o in environ['ALLOWED_ORIGINS'].split(',') if o.strip()]
        config['cors']['allowed_origins'] = origins

    if environ.get('DISCOVERY_TIMEOUT'):
        config['discovery']['timeout_ms'] = _env_int('DISCOVERY_TIMEOUT', environ['DISCOVERY_TIMEOUT'])

    if environ.get('MAX_DISCOVERY_DEVICES'):
        config['discovery']['max_devices'] = _env_int('MAX_DISCOVERY_DEVICES', environ['MAX_DISCOVERY_DEVICES'])

    return config

def _env_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")

def get_default_config() -> Dict[str, Any]:
    """Return a fully defaulted configuration without reading any file"""
    return _apply_defaults({})


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, timezone_name: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(timezone_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration with timezone-aware timestamps"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    timezone_name = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, timezone_name)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=[]
    )

    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logging.getLogger().addHandler(console_handler)

    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logging.getLogger().addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, timezone={timezone_name}, "
                f"console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "server": {
            "host": "0.0.0.0",
            "port": 3000,
            "debug": False
        },
        "cors": {
            "allowed_origins": ["http://localhost:*", "http://192.168.1.*"]
        },
        "discovery": {
            "timeout_ms": 5000,
            "max_timeout_ms": 30000,
            "max_devices": 10,
            "accept_bare_address_records": True,
            "service_marker": "Roku",
            "service_names": ["_ecp-server._tcp.local.", "_http._tcp.local."],
            "listen_port": 5353
        },
        "ecp": {
            "port": 8060,
            "timeout_ms": 5000
        },
        "frontend": {
            "static_dir": "public"
        },
        "logging": {
            "level": "INFO",
            "file": "logs/roku_remote.log",
            "console_output": True,
            "timezone": "America/New_York"
        }
    }
