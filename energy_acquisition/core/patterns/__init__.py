from .state_machine import ConnectionStateMachine, ConnectionState

__all__ = ["ConnectionStateMachine", "ConnectionState"]
