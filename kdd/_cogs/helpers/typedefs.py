"""
Rudimentary type [re-]definitions for cross-versioned Python & mypy.

Some stdlib classes are generics in the type-sheds but not at runtime
(e.g. `logging.LoggerAdapter`), so they are aliased here once and reused.
"""
import logging
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    LoggerAdapter = logging.LoggerAdapter[Any]
else:
    LoggerAdapter = logging.LoggerAdapter

# Anything loggable: either a module-level logger or a key-bound adapter.
Logger = Union[logging.Logger, LoggerAdapter]
