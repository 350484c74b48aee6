"""Force a validation pass when the compiled rules are swapped.

Form engines commonly keep validating against the rules they saw first; this
trigger runs one pass whenever it observes a different rules object.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

__all__ = ["RevalidationTrigger"]

_NOTHING = object()


class RevalidationTrigger:
    """Run ``validate`` once per observed change of the rules object's identity."""

    def __init__(self, validate: Callable[[], Any]) -> None:
        self._validate = validate
        self._last: Any = _NOTHING

    def observe(self, validation_schema: Any) -> bool:
        """Record ``validation_schema`` and revalidate if it is a new object.

        Returns:
            True if a validation pass ran
        """
        if validation_schema is self._last:
            return False
        self._last = validation_schema
        logger.debug("Validation schema changed; revalidating")
        self._validate()
        return True
