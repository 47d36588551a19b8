"""CLI support modules (configuration and machine-aware output)."""
