# ==============================================================================
# Return Type Descriptors
# ==============================================================================
"""
Extract the declared return type of a cached method.

The descriptor is handed to the value serializer so that nested generic
payloads (list[Widget], dict[str, Widget], ...) can be rebuilt on read.
"""

import inspect
import logging
import typing
from collections.abc import Callable
from typing import Any, Optional

logger = logging.getLogger(__name__)


def return_type_of(method: Optional[Callable]) -> Any:
    """
    Get the return annotation of a method.

    Forward references are resolved when possible; otherwise the raw
    annotation is returned. A string annotation that is not valid Python
    gives None.

    Args:
        method: Function or bound method, or None

    Returns:
        The return type, or None if there is no method or no annotation
    """
    if method is None:
        return None
    try:
        hints = typing.get_type_hints(method)
    except SyntaxError:
        logger.debug("Unparseable return annotation on %r", method)
        return None
    except (NameError, TypeError):
        logger.debug("Could not resolve type hints of %r", method)
    else:
        return hints.get("return")

    try:
        annotation = inspect.signature(method).return_annotation
    except (TypeError, ValueError):
        return None
    if annotation is inspect.Signature.empty:
        return None
    return annotation
