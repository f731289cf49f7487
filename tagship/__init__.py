"""tagship: tag-triggered package release orchestrator."""

__version__ = "0.1.0"
