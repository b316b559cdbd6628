from fieldsales.agent.backend import BackendClient, BackendError
from fieldsales.agent.runner import TrackerAgent, build_agent

__all__ = ["BackendClient", "BackendError", "TrackerAgent", "build_agent"]
