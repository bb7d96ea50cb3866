"""AIO Jobs - translation/embedding job pipeline and session save service."""

__version__ = "0.1.0"
