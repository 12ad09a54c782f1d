#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""External reasoning agent access: backends, gateway and retry."""

from foreman.agents.base import AgentBackend, AgentResult
from foreman.agents.cli_backend import DEFAULT_AGENTS, AgentCommand, CliAgentBackend, default_backends
from foreman.agents.gateway import NO_AGENT_ERROR, AgentGateway
from foreman.agents.retry import (
    ErrorClass,
    RetryConfig,
    RetryHandler,
    RetryState,
    classify_error,
    create_retry_handler,
    is_transient_error,
)

__all__ = [
    "AgentBackend",
    "AgentResult",
    "DEFAULT_AGENTS",
    "AgentCommand",
    "CliAgentBackend",
    "default_backends",
    "NO_AGENT_ERROR",
    "AgentGateway",
    "ErrorClass",
    "RetryConfig",
    "RetryHandler",
    "RetryState",
    "classify_error",
    "create_retry_handler",
    "is_transient_error",
]
