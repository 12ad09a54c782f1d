#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Priority-ordered fallback across agent backends."""

from pathlib import Path
from typing import List, Optional, Union

from foreman.agents.base import AgentBackend, AgentResult
from foreman.agents.cli_backend import default_backends
from foreman.debug_logger import get_logger


logger = get_logger()

NO_AGENT_ERROR = "No AI agents available"


class AgentGateway:
    """Tries each configured backend in order until one succeeds.

    Retrying is not done here; callers layer ``RetryHandler`` on top.
    """

    def __init__(self, backends: Optional[List[AgentBackend]] = None):
        self.backends = backends if backends is not None else default_backends()

    def available_agents(self) -> List[str]:
        return [backend.name for backend in self.backends if backend.is_available()]

    async def invoke(
        self,
        prompt: str,
        cwd: Optional[Union[str, Path]] = None,
        timeout_ms: Optional[int] = None,
    ) -> AgentResult:
        """Invoke the first backend that answers successfully.

        When every available backend fails, the last failure is returned so
        its error text can be classified by the retry layer.
        """
        last_failure: Optional[AgentResult] = None
        for backend in self.backends:
            if not backend.is_available():
                logger.debug(f"[gateway] agent '{backend.name}' not available")
                continue

            logger.log_agent_request(backend.name, prompt, cwd)
            try:
                result = await backend.invoke(prompt, cwd=cwd, timeout_ms=timeout_ms)
            except Exception as e:
                logger.log_error("gateway", e, {"agent": backend.name})
                result = AgentResult(success=False, error=str(e), agent_used=backend.name)
            logger.log_agent_response(backend.name, result.success, result.output, result.error)

            if result.success:
                return result

            logger.warning(f"[gateway] agent '{backend.name}' failed: {result.error}")
            last_failure = result

        if last_failure is None:
            return AgentResult(success=False, error=NO_AGENT_ERROR)
        return AgentResult(
            success=False,
            error=f"All agents failed; last error from {last_failure.agent_used}: {last_failure.error}",
            agent_used=last_failure.agent_used,
        )
