"""Logging adapters implementing LoggerProtocol."""

from accessgate.infrastructure.logging.console_adapter import ConsoleAdapter

__all__ = ["ConsoleAdapter"]
