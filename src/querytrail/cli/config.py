"""
CLI Configuration

Centralized configuration for the QueryTrail CLI.
"""

import os
from typing import Optional


class CLIConfig:
    """Configuration for CLI commands"""

    # Machine mode (plain/JSON output, no presentation)
    _machine_mode: Optional[bool] = None

    @classmethod
    def set_machine_mode(cls, enabled: bool) -> None:
        """Set machine mode (pure data output, no presentation)"""
        cls._machine_mode = enabled

    @classmethod
    def is_machine_mode(cls) -> bool:
        """
        Check if machine mode is active.

        Machine mode is the default. Returns False only if human mode is
        explicitly requested via --human or QUERYTRAIL_HUMAN_MODE.
        """
        if cls._machine_mode is not None:
            return cls._machine_mode
        if os.getenv("QUERYTRAIL_HUMAN_MODE", "").lower() in ("1", "true", "yes"):
            return False
        return True

    @classmethod
    def reset(cls) -> None:
        """Forget explicit settings (used between CLI invocations in tests)."""
        cls._machine_mode = None
