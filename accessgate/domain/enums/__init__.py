"""Domain enums package.

Usage:
    from accessgate.domain.enums import KeyScope, ResultKind
"""

from accessgate.domain.enums.result_kind import KeyScope, ResultKind

__all__ = ["KeyScope", "ResultKind"]
