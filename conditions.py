"""Condition evaluation against current device state."""

import logging
import operator
from typing import Any, Dict

from devices import DeviceStateManager
from models import DataType, DeviceTarget
from z2m_helpers import map_z2m_value_to_value, payload_value_to_text

logger = logging.getLogger(__name__)

_OPERATORS = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "ge": operator.ge,
    "lt": operator.lt,
    "le": operator.le,
}


class ConditionError(ValueError):
    """Condition has an unsupported shape."""


def _coerce(value: Any) -> Any:
    # Compare typed when both sides can be read as bool or number
    if isinstance(value, (bool, int, float)) or value is None:
        return value
    text = payload_value_to_text(value)
    as_bool = map_z2m_value_to_value(DataType.BOOL, text)
    if isinstance(as_bool, bool):
        return as_bool
    return map_z2m_value_to_value(DataType.DOUBLE, text)


class ConditionEvaluator:
    """
    Evaluates structured conditions:

      {"left": operand, "op": "eq", "right": operand}
      {"all": [condition, ...]} / {"any": [condition, ...]}

    An operand is {"target": {"identifier": ..., "contact": ...}} or {"value": ...}.
    A missing condition is always met.
    """

    def __init__(self, states: DeviceStateManager):
        self.states = states

    async def is_condition_met(self, condition: Any) -> bool:
        if condition is None:
            return True
        if not isinstance(condition, dict):
            raise ConditionError(f"Unsupported condition: {condition!r}")

        if "all" in condition:
            for c in condition["all"]:
                if not await self.is_condition_met(c):
                    return False
            return True
        if "any" in condition:
            for c in condition["any"]:
                if await self.is_condition_met(c):
                    return True
            return False

        op = _OPERATORS.get(condition.get("op"))
        if op is None or "left" not in condition or "right" not in condition:
            raise ConditionError(f"Unsupported condition: {condition!r}")

        left = _coerce(self._operand_value(condition["left"]))
        right = _coerce(self._operand_value(condition["right"]))
        try:
            return bool(op(left, right))
        except TypeError:
            raise ConditionError(f"Cannot compare {left!r} and {right!r}")

    def _operand_value(self, operand: Dict[str, Any]) -> Any:
        if not isinstance(operand, dict):
            raise ConditionError(f"Unsupported operand: {operand!r}")
        if "value" in operand:
            return operand["value"]
        if "target" in operand:
            target = operand["target"] or {}
            identifier = target.get("identifier")
            contact = target.get("contact")
            if not identifier or not contact:
                raise ConditionError(f"Operand target incomplete: {operand!r}")
            return self.states.get_state(DeviceTarget(identifier, contact))
        raise ConditionError(f"Unsupported operand: {operand!r}")
