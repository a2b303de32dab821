"""Conduct channel."""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List

from models import Conduct, DeviceTarget

logger = logging.getLogger(__name__)

ConductHandler = Callable[[Conduct], Awaitable[None]]


def target_from_dict(data: Dict[str, Any]) -> DeviceTarget:
    """Parse {"identifier": ..., "contact": ...}."""
    if not isinstance(data, dict) or not data.get("identifier"):
        raise ValueError(f"Invalid device target: {data!r}")
    return DeviceTarget(data["identifier"], data.get("contact"))


def conduct_from_dict(data: Dict[str, Any]) -> Conduct:
    """Parse {"target": {...}, "value": ...}. A missing target is kept as None."""
    if not isinstance(data, dict):
        raise ValueError(f"Invalid conduct: {data!r}")
    target = data.get("target")
    return Conduct(
        target=target_from_dict(target) if target is not None else None,
        value=data.get("value"),
    )


class ConductManager:
    """Delivers published conducts to subscribed handlers."""

    def __init__(self):
        self._subscribers: List[ConductHandler] = []

    def subscribe(self, handler: ConductHandler):
        """Register a handler called for every published conduct."""
        self._subscribers.append(handler)

    async def publish(self, conducts: Iterable[Conduct]):
        """Deliver conducts in order to every subscriber."""
        conducts = list(conducts)
        if not conducts:
            logger.debug("Empty conduct batch published")
            return

        logger.info(f"Publishing {len(conducts)} conduct(s)")
        for conduct in conducts:
            for handler in list(self._subscribers):
                try:
                    await handler(conduct)
                except Exception as e:
                    logger.error(f"Failed to handle conduct {conduct}: {e}", exc_info=True)
