#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Agent backends that shell out to installed agent CLIs."""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from foreman import config
from foreman.agents.base import AgentBackend, AgentResult
from foreman.debug_logger import get_logger
from foreman.tools.command_runner import execute


logger = get_logger()

_AGENT_OUTPUT_BUFFER = 10 * 1024 * 1024


@dataclass(frozen=True)
class AgentCommand:
    """How to launch one agent CLI; the prompt is written to stdin."""
    name: str
    command: Tuple[str, ...]


DEFAULT_AGENTS: Dict[str, AgentCommand] = {
    "claude": AgentCommand(
        "claude",
        ("claude", "--print", "--output-format", "text", "--permission-mode", "bypassPermissions", "-"),
    ),
    "codex": AgentCommand(
        "codex",
        ("codex", "exec", "--skip-git-repo-check", "--full-auto", "-"),
    ),
    "gemini": AgentCommand(
        "gemini",
        ("gemini", "--output-format", "text", "--yolo"),
    ),
}


class CliAgentBackend(AgentBackend):
    """Runs an agent executable with the prompt on stdin."""

    def __init__(self, agent: AgentCommand):
        super().__init__(agent.name)
        self.agent = agent

    def is_available(self) -> bool:
        return shutil.which(self.agent.command[0]) is not None

    async def invoke(
        self,
        prompt: str,
        cwd: Optional[Union[str, Path]] = None,
        timeout_ms: Optional[int] = None,
    ) -> AgentResult:
        timeout = timeout_ms or config.get_timeout("AI_DEFAULT")
        result = await execute(
            cwd or config.ROOT,
            list(self.agent.command),
            max_buffer_bytes=_AGENT_OUTPUT_BUFFER,
            timeout_ms=timeout,
            stdin_data=prompt,
        )

        if result.timed_out:
            return AgentResult(success=False, error="Agent timed out", agent_used=self.name)

        if not result.success:
            detail = result.stderr.strip() or result.error or f"exit code {result.exit_code}"
            return AgentResult(success=False, error=detail, agent_used=self.name)

        output = result.stdout.strip()
        if not output:
            return AgentResult(success=False, error="Agent returned empty output", agent_used=self.name)
        return AgentResult(success=True, output=output, agent_used=self.name)


def default_backends(priority: Optional[List[str]] = None) -> List[AgentBackend]:
    """Build CLI backends in priority order, ignoring unknown names."""
    names = priority if priority is not None else config.get_agent_priority()
    backends: List[AgentBackend] = []
    for name in names:
        agent = DEFAULT_AGENTS.get(name)
        if agent is None:
            logger.warning(f"Unknown agent '{name}' in priority list; skipping")
            continue
        backends.append(CliAgentBackend(agent))
    return backends
