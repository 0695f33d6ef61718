"""Core enums package.

Usage:
    from accessgate.core.enums import ErrorCode, Environment
"""

from accessgate.core.enums.environment import Environment
from accessgate.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]
