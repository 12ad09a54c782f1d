"""Base interface for external reasoning agents."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class AgentResult:
    """Outcome of asking an agent (or the gateway) to answer a prompt."""
    success: bool
    output: str = ""
    error: Optional[str] = None
    agent_used: Optional[str] = None


class AgentBackend(ABC):
    """Abstract base class for agent backends.

    A backend wraps one way of reaching a reasoning agent. The agent's
    internal behaviour is opaque: it receives a prompt and returns text.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def is_available(self) -> bool:
        """Return True when the backend can be invoked on this machine."""

    @abstractmethod
    async def invoke(
        self,
        prompt: str,
        cwd: Optional[Union[str, Path]] = None,
        timeout_ms: Optional[int] = None,
    ) -> AgentResult:
        """Send ``prompt`` to the agent.

        Args:
            prompt: Full prompt text
            cwd: Working directory the agent should operate in
            timeout_ms: Hard deadline for the call

        Returns:
            AgentResult; failures are reported, not raised.
        """
