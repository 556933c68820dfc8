"""Request-scoped context for log correlation and merge attribution."""

from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
agent_id_var: ContextVar[Optional[str]] = ContextVar("agent_id", default=None)


def set_request_context(request_id: str | None, agent_id: str | None = None) -> None:
    """Set the current request context.

    Args:
        request_id: Correlation ID for the request
        agent_id: ID of the agent acting in this request, if known
    """
    request_id_var.set(request_id)
    agent_id_var.set(agent_id)


def get_request_id() -> str | None:
    """Get the current request ID."""
    return request_id_var.get()


def get_agent_id() -> str | None:
    """Get the acting agent ID."""
    return agent_id_var.get()


def clear_request_context() -> None:
    """Clear the current request context."""
    request_id_var.set(None)
    agent_id_var.set(None)
