"""Two-phase action dispatch.

A flow acknowledges an event synchronously (the chat platform gives us three
seconds) and does the real work later on its own asyncio task. The dispatcher
holds the flows, classifies each event and hands it to the first flow that
declares the action.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from servicedesk.core.logging import flow_action_context

from .classifier import ActionClassifier

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .actions import ActionData, FlowAction, InboundEvent

logger = logging.getLogger(__name__)


class ServiceFlow(ABC):
    """A group of related action handlers sharing the dispatch contract."""

    @abstractmethod
    def get_flow_actions(
        self, event: InboundEvent, additional_data: ActionData | None
    ) -> set[FlowAction]:
        """Return the actions this flow claims. Must be pure."""

    @abstractmethod
    def handle_action_immediate_response(
        self, action: FlowAction, event: InboundEvent, additional_data: ActionData | None
    ) -> bool:
        """Acknowledge the event. Runs in the request path and must not do I/O."""

    @abstractmethod
    async def handle_action_slow_response(
        self, action: FlowAction, event: InboundEvent, additional_data: ActionData | None
    ) -> bool:
        """Do the actual work after acknowledgement.

        Should not raise: failures are reported as False.
        """

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class DispatchResult:
    action: FlowAction | None
    handled: bool
    acknowledged: bool = False
    flow: str | None = None


class FlowDispatcher:
    """Route events to flows and run their slow phase in the background."""

    def __init__(
        self, flows: Iterable[ServiceFlow], classifier: ActionClassifier | None = None
    ) -> None:
        self._flows = list(flows)
        self._classifier = classifier or ActionClassifier()
        # Strong references so running tasks are not garbage collected
        self._in_flight: set[asyncio.Task[bool]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def find_flow(
        self, action: FlowAction, event: InboundEvent, additional_data: ActionData | None
    ) -> ServiceFlow | None:
        for flow in self._flows:
            if action in flow.get_flow_actions(event, additional_data):
                return flow
        return None

    def dispatch(
        self, event: InboundEvent, additional_data: ActionData | None = None
    ) -> DispatchResult:
        """Acknowledge an event and schedule its slow phase.

        Must be called from a running event loop. Returns as soon as the
        immediate hook has run; the slow hook's outcome only shows up in logs.
        """
        action = self._classifier.classify(event)
        if action is None:
            return DispatchResult(action=None, handled=False)

        flow = self.find_flow(action, event, additional_data)
        if flow is None:
            logger.info("No flow declares action %s; ignoring", action.value)
            return DispatchResult(action=action, handled=False)

        acknowledged = flow.handle_action_immediate_response(action, event, additional_data)
        if not acknowledged:
            logger.warning("%s did not acknowledge %s; slow phase skipped", flow.name, action.value)
            return DispatchResult(action=action, handled=True, acknowledged=False, flow=flow.name)

        task = asyncio.get_running_loop().create_task(
            self._run_slow(flow, action, event, additional_data),
            name=f"{flow.name}:{action.value}",
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return DispatchResult(action=action, handled=True, acknowledged=True, flow=flow.name)

    async def _run_slow(
        self,
        flow: ServiceFlow,
        action: FlowAction,
        event: InboundEvent,
        additional_data: ActionData | None,
    ) -> bool:
        with flow_action_context(flow.name, action.value):
            try:
                ok = await flow.handle_action_slow_response(action, event, additional_data)
            except Exception:
                logger.exception("%s failed handling %s", flow.name, action.value)
                return False

            if ok:
                logger.info("%s completed %s", flow.name, action.value)
            else:
                logger.warning("%s could not complete %s", flow.name, action.value)
            return bool(ok)

    async def drain(self) -> None:
        """Wait for every slow phase already started. Nothing is cancelled."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
