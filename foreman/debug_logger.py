#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Debug logging for foreman verification runs.

Logging is off unless FOREMAN_DEBUG is set or ``DebugLogger.initialize``
is called with ``enabled=True``. Each session writes one timestamped file
under ``.foreman/logs/``. Components log through child loggers of
``foreman`` (``foreman.resolver``, ``foreman.executor`` and so on), and
the structured helpers below record the events a reviewer needs to
reconstruct a verdict: which capability tier answered, which commands
ran, what the agent was asked and what came back.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from foreman import config


PREVIEW_CHARS = 500


def _preview(text: Optional[str], limit: int = PREVIEW_CHARS) -> str:
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit] + f"... ({len(text)} chars)"


def prune_old_logs(log_dir: Path, keep: int) -> None:
    """Delete all but the ``keep`` newest ``*.log`` files in ``log_dir``."""
    if keep < 1 or not log_dir.exists():
        return

    log_files = sorted(
        (path for path in log_dir.glob("*.log") if path.is_file()),
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )
    for stale_file in log_files[keep:]:
        try:
            stale_file.unlink()
        except OSError:
            continue


class DebugLogger:
    """Process-wide debug logger with per-component child loggers."""

    _instance: Optional['DebugLogger'] = None

    def __init__(self, enabled: bool = False, log_dir: Optional[Path] = None):
        """
        Args:
            enabled: Start writing a log file immediately
            log_dir: Where log files go (defaults to .foreman/logs/)
        """
        self._enabled = False
        self._log_file: Optional[Path] = None
        self._handler: Optional[logging.Handler] = None
        self._loggers: Dict[str, logging.Logger] = {}

        if enabled:
            self._enable(log_dir)

    def _enable(self, log_dir: Optional[Path]) -> None:
        log_dir = log_dir or config.LOGS_DIR
        log_dir.mkdir(exist_ok=True, parents=True)

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._log_file = log_dir / f"foreman_debug_{stamp}.log"
        self._attach_handler()
        self._enabled = True

        prune_old_logs(log_dir, config.LOG_RETENTION_LIMIT)

        self.log("system", "SESSION_START", {
            "log_file": str(self._log_file),
            "cwd": str(Path.cwd()),
            "metadata_dir": config.METADATA_DIRNAME,
        })

    @classmethod
    def initialize(cls, enabled: bool = False, log_dir: Optional[Path] = None) -> 'DebugLogger':
        """Create the global logger, or switch an existing disabled one on.

        Modules keep the instance they fetched at import time, so enabling
        happens in place rather than by replacing the instance.
        """
        if cls._instance is None:
            cls._instance = cls(enabled, log_dir)
        elif enabled and not cls._instance.enabled:
            cls._instance._enable(log_dir)
        return cls._instance

    @classmethod
    def get_instance(cls) -> 'DebugLogger':
        if cls._instance is None:
            cls._instance = cls(enabled=config.DEBUG_ENABLED)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Close and drop the global instance (used by tests)."""
        if cls._instance is not None:
            cls._instance.close()
        cls._instance = None

    def _attach_handler(self) -> None:
        handler = logging.FileHandler(self._log_file, mode='w', encoding='utf-8')
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(name)-24s | %(levelname)-8s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))

        package_logger = logging.getLogger('foreman')
        package_logger.setLevel(logging.DEBUG)
        package_logger.addHandler(handler)
        package_logger.propagate = False
        self._handler = handler

    def get_logger(self, component: str) -> logging.Logger:
        """Child logger for a component, e.g. ``foreman.resolver``."""
        if component not in self._loggers:
            self._loggers[component] = logging.getLogger(f'foreman.{component}')
        return self._loggers[component]

    def log(self, component: str, event: str, data: Optional[Dict[str, Any]] = None, level: str = "INFO"):
        """Write ``[EVENT] {json}`` to the component's logger."""
        if not self._enabled:
            return

        message = f"[{event}]"
        if data:
            message += f" {json.dumps(data, indent=2, default=str)}"
        self.get_logger(component).log(getattr(logging, level.upper(), logging.INFO), message)

    def log_error(self, component: str, error: Exception, context: Optional[Dict[str, Any]] = None):
        if not self._enabled:
            return

        data: Dict[str, Any] = {
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        if context:
            data["context"] = context
        self.log(component, "ERROR", data, "ERROR")

    def log_capability_tier(self, project_root: Path, tier: str, confidence: Optional[float] = None):
        """Record which resolution tier produced a project's profile."""
        if not self._enabled:
            return
        self.log("resolver", "CAPABILITY_TIER", {
            "project_root": str(project_root),
            "tier": tier,
            "confidence": confidence,
        })

    def log_agent_request(self, agent: str, prompt: str, cwd: Optional[Any] = None):
        if not self._enabled:
            return
        self.log("agents", "AGENT_REQUEST", {
            "agent": agent,
            "cwd": str(cwd) if cwd else None,
            "prompt_chars": len(prompt),
            "prompt_preview": _preview(prompt),
        }, "DEBUG")

    def log_agent_response(self, agent: str, success: bool, output: str = "", error: Optional[str] = None):
        if not self._enabled:
            return
        data: Dict[str, Any] = {"agent": agent, "success": success}
        if success:
            data["output_chars"] = len(output)
            data["output_preview"] = _preview(output)
        else:
            data["error"] = error
        self.log("agents", "AGENT_RESPONSE", data, "DEBUG" if success else "WARNING")

    def log_check_execution(self, name: str, command: str, success: bool, duration_ms: int, output: str = ""):
        """Record one check run; failing output is kept in the preview."""
        if not self._enabled:
            return
        data: Dict[str, Any] = {
            "check": name,
            "command": command,
            "success": success,
            "duration_ms": duration_ms,
        }
        if not success:
            data["output_tail"] = output[-PREVIEW_CHARS:]
        self.log("executor", "CHECK_EXECUTION", data, "INFO" if success else "WARNING")

    def log_verdict(self, feature_id: str, verdict: str, verified_by: str, details: Optional[Dict[str, Any]] = None):
        if not self._enabled:
            return
        data: Dict[str, Any] = {
            "feature": feature_id,
            "verdict": verdict,
            "verified_by": verified_by,
        }
        if details:
            data.update(details)
        self.log("verifier", "VERDICT", data)

    def _log_plain(self, level: str, msg: str, *args: Any, **kwargs: Any) -> None:
        if not self._enabled:
            return
        self.get_logger("general").log(getattr(logging, level, logging.INFO), msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("INFO", msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("WARNING", msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("ERROR", msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_plain("DEBUG", msg, *args, **kwargs)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def log_file_path(self) -> Optional[Path]:
        return self._log_file

    def close(self):
        """Write the session end marker and detach the file handler."""
        if not self._enabled:
            return
        self.log("system", "SESSION_END", {"timestamp": datetime.now().isoformat()})
        if self._handler is not None:
            self._handler.close()
            logging.getLogger('foreman').removeHandler(self._handler)
            self._handler = None
        self._enabled = False


def get_logger() -> DebugLogger:
    """Return the process-wide debug logger."""
    return DebugLogger.get_instance()