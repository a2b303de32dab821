"""Automation processor: state-triggered processes."""

import logging
from typing import List

from conditions import ConditionEvaluator
from conducts import ConductManager
from devices import DeviceStateManager
from models import Conduct, DeviceTarget

logger = logging.getLogger(__name__)


class Processor:
    """Evaluates state-triggered processes on device state changes."""

    def __init__(
        self,
        condition_evaluator: ConditionEvaluator,
        processes_service,
        device_state_manager: DeviceStateManager,
        conduct_manager: ConductManager,
    ):
        self.condition_evaluator = condition_evaluator
        self.processes_service = processes_service
        self.device_state_manager = device_state_manager
        self.conduct_manager = conduct_manager

    def start(self):
        """Subscribe to state changes."""
        self.device_state_manager.subscribe(self.process_state_changed)
        logger.info("Processor started")

    async def process_state_changed(self, target: DeviceTarget):
        """Evaluate processes triggered by target and publish their conducts as one batch."""
        processes = await self.processes_service.get_state_triggered()
        applicable = [
            p for p in processes
            if not p.is_disabled and target in (p.triggers or [])
        ]
        if not applicable:
            logger.debug(f"Change on target {target} ignored.")
            return

        conducts: List[Conduct] = []
        for process in applicable:
            try:
                if not await self.condition_evaluator.is_condition_met(process.condition):
                    continue

                logger.info(f'Process "{process.alias}" queued... (trigger {target})')
                conducts.extend(process.conducts)
            except Exception as e:
                logger.warning(
                    f"State triggered process condition invalid. Recheck your configuration. "
                    f"Process: {process.alias}: {e}",
                    exc_info=True,
                )

        await self.conduct_manager.publish(conducts)
