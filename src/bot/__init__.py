"""Bot module - decision protocol, oracles, operator and hand loop"""

from .decision import DecisionQueryProtocol, fallback_action, parse_response, validate_action
from .hand_engine import HandLifecycleEngine, HandState
from .operator import AutoOperator, ConsoleOperator, Operator, OperatorCommand
from .oracles import Oracle, create_oracle, list_oracles
from .presenter import ActionExecutor, format_advice, format_fallback_advice
from .query import construct_query

__all__ = [
    'ActionExecutor',
    'AutoOperator',
    'ConsoleOperator',
    'DecisionQueryProtocol',
    'HandLifecycleEngine',
    'HandState',
    'Operator',
    'OperatorCommand',
    'Oracle',
    'construct_query',
    'create_oracle',
    'fallback_action',
    'format_advice',
    'format_fallback_advice',
    'list_oracles',
    'parse_response',
    'validate_action',
]
