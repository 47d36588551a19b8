"""
SQLite Storage Configuration

Centralized configuration for the SQLite storage subsystem.
"""

# Connection settings
DEFAULT_TIMEOUT = 30.0
ENABLE_WAL_MODE = True

# Schema version
SCHEMA_VERSION = "1.0.0"

# Default database file name when a directory is given
DEFAULT_DB_NAME = "querytrail.db"
