"""k1s0 experiment library."""

from .client import ExperimentClient
from .decision import DecisionService, ExperimentDecisionContext, FeatureDecisionContext
from .event import (
    ConversionEvent,
    EventContext,
    EventProcessor,
    ImpressionEvent,
    UserEvent,
    VisitorAttribute,
    create_conversion_user_event,
    create_impression_user_event,
)
from .exceptions import ExperimentError, ExperimentErrorCodes, PanicRecoveredError
from .execution import ExecutionContext
from .factory import ExperimentClientFactory
from .logger import new_logger
from .memory import InMemoryDecisionService, InMemoryEventProcessor
from .models import (
    DecisionSource,
    Event,
    Experiment,
    ExperimentDecision,
    Feature,
    FeatureDecision,
    UserContext,
    Variable,
    VariableType,
    Variation,
    VariationVariable,
)
from .project_config import (
    DatafileProjectConfig,
    ProjectConfig,
    ProjectConfigManager,
    StaticProjectConfigManager,
)
from .result import ClientResult, FeatureVariablesResult
from .settings import ClientSettings

__all__ = [
    "ClientResult",
    "ClientSettings",
    "ConversionEvent",
    "DatafileProjectConfig",
    "DecisionService",
    "DecisionSource",
    "Event",
    "EventContext",
    "EventProcessor",
    "ExecutionContext",
    "Experiment",
    "ExperimentClient",
    "ExperimentClientFactory",
    "ExperimentDecision",
    "ExperimentDecisionContext",
    "ExperimentError",
    "ExperimentErrorCodes",
    "Feature",
    "FeatureDecision",
    "FeatureDecisionContext",
    "FeatureVariablesResult",
    "ImpressionEvent",
    "InMemoryDecisionService",
    "InMemoryEventProcessor",
    "PanicRecoveredError",
    "ProjectConfig",
    "ProjectConfigManager",
    "StaticProjectConfigManager",
    "UserContext",
    "UserEvent",
    "Variable",
    "VariableType",
    "Variation",
    "VariationVariable",
    "VisitorAttribute",
    "create_conversion_user_event",
    "create_impression_user_event",
    "new_logger",
]
