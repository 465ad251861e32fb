"""Action dispatch for request intake.

Inbound events are classified into flow actions, acknowledged synchronously
and processed in the background by the flow that declares the action.
"""

from .actions import ActionData, FlowAction
from .base import DispatchResult, FlowDispatcher, ServiceFlow
from .classifier import ActionClassifier
from .intake import IntakeFlow
from .orchestrator import FlowOrchestrator

__all__ = [
    "ActionClassifier",
    "ActionData",
    "DispatchResult",
    "FlowAction",
    "FlowDispatcher",
    "FlowOrchestrator",
    "IntakeFlow",
    "ServiceFlow",
]
