#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck - Configuration
Centralized configuration loaded from environment variables, with validation
"""

import os
from pathlib import Path
from typing import Dict, Any, List
from dataclasses import dataclass, field
from enum import Enum

import pytz


class Environment(Enum):
    """Execution environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class DatabaseConfig:
    """JSON database settings"""
    path: Path
    backup_dir: Path
    backup_interval_hours: int = 6
    max_backups: int = 10
    auto_backup: bool = True


@dataclass
class ServerConfig:
    """HTTP dashboard settings"""
    host: str = "127.0.0.1"
    port: int = 8000
    debug_mode: bool = False
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == 'true'


class TrackerConfig:
    """Main configuration object"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Load configuration from environment variables"""

        # Directories
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.export_dir = Path(os.getenv('EXPORT_DIR', 'exports'))
        self.backup_dir = Path(os.getenv('BACKUP_DIR', 'backups'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        # Database
        self.database = DatabaseConfig(
            path=self.data_dir / "habitcheck.json",
            backup_dir=self.backup_dir,
            backup_interval_hours=int(os.getenv('BACKUP_INTERVAL_HOURS', 6)),
            max_backups=int(os.getenv('MAX_BACKUPS', 10)),
            auto_backup=_env_bool('AUTO_BACKUP', 'true')
        )

        # Server
        origins = os.getenv('ALLOWED_ORIGINS', '*')
        self.server = ServerConfig(
            host=os.getenv('HOST', '127.0.0.1'),
            port=int(os.getenv('PORT', 8000)),
            debug_mode=_env_bool('DEBUG_MODE', 'false'),
            allowed_origins=[o.strip() for o in origins.split(',') if o.strip()]
        )

        # Calendar days are computed in this zone
        self.timezone = os.getenv('TIMEZONE', 'UTC')

        # Logging
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO'))
        self.log_to_file = _env_bool('LOG_TO_FILE', 'false')
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Validate configuration"""
        errors = []

        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Port {self.server.port} is outside the allowed range (1024-65535)")

        if self.database.max_backups < 1:
            errors.append("MAX_BACKUPS must be a positive number")

        if self.database.backup_interval_hours < 1:
            errors.append("BACKUP_INTERVAL_HOURS must be a positive number")

        if self.timezone not in pytz.all_timezones_set:
            errors.append(f"TIMEZONE '{self.timezone}' is not a known IANA timezone")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Create the data, export, backup and log directories"""
        for directory in (self.data_dir, self.export_dir, self.backup_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Build a logging.config.dictConfig dictionary"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': 'ext://sys.stderr'
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'apscheduler': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'uvicorn.access': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"habitcheck_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return logging_config

    def get_timezone(self):
        return pytz.timezone(self.timezone)

    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to a dictionary"""
        return {
            'environment': self.environment.value,
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode
            },
            'database_path': str(self.database.path),
            'auto_backup': self.database.auto_backup,
            'timezone': self.timezone,
            'log_level': self.log_level.value
        }


# Global configuration instance
config = TrackerConfig()


__all__ = [
    'config',
    'TrackerConfig',
    'Environment',
    'LogLevel',
    'DatabaseConfig',
    'ServerConfig'
]
