#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Agent-backed judgment of acceptance criteria.

The analyzer sends check results plus either a diff (diff mode) or the
project root (autonomous mode) to the agent gateway, retrying transient
failures. Whatever goes wrong, ``analyze`` returns a VerificationResult:
gateway and parse failures become a ``needs_review`` result with every
criterion unsatisfied.
"""

import pathlib
from typing import Dict, Iterable, List, Optional, Union

from foreman import config
from foreman.agents.gateway import AgentGateway
from foreman.agents.retry import RetryHandler, RetryState, create_retry_handler
from foreman.config import DEFAULT_POLICY, VerificationPolicy
from foreman.debug_logger import get_logger
from foreman.errors import ResponseParseError
from foreman.models.capability import utc_timestamp
from foreman.models.feature import Feature
from foreman.models.verification import (
    CheckResult,
    Verdict,
    VerificationMode,
    VerificationResult,
)
from foreman.terminal.formatting import Colors, colorize
from foreman.tools import git_ops
from foreman.tools.git_ops import GitDiff
from foreman.verifier.parsing import (
    apply_safety_net,
    parse_verification_response,
    unsatisfied_verdicts,
)
from foreman.verifier.prompts import build_autonomous_prompt, build_verification_prompt


logger = get_logger()

SOURCE_FILE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py", ".go", ".rs")
MAX_RELATED_FILES = 10


def read_related_files(
    project_root: pathlib.Path,
    changed_files: Iterable[str],
    limit: int = MAX_RELATED_FILES,
) -> Dict[str, str]:
    """Read changed source files for prompt context.

    Paths escaping ``project_root`` and unreadable files are skipped.
    """
    root = pathlib.Path(project_root).resolve()
    contents: Dict[str, str] = {}
    for relative in changed_files:
        if len(contents) >= limit:
            break
        if not relative.endswith(SOURCE_FILE_EXTENSIONS):
            continue
        candidate = (root / relative).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            logger.warning(f"[analyzer] skipping path outside project: {relative}")
            continue
        if not candidate.is_file():
            continue
        try:
            contents[relative] = candidate.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug(f"[analyzer] could not read {relative}: {e}")
    return contents


class VerificationAnalyzer:
    """Turns check output and codebase evidence into a verdict."""

    def __init__(
        self,
        gateway: Optional[AgentGateway] = None,
        retry_handler: Optional[RetryHandler] = None,
        policy: VerificationPolicy = DEFAULT_POLICY,
    ):
        self.policy = policy
        self._gateway = gateway
        self.retry_handler = retry_handler or create_retry_handler(policy)

    @property
    def gateway(self) -> AgentGateway:
        if self._gateway is None:
            self._gateway = AgentGateway()
        return self._gateway

    async def analyze(
        self,
        project_root: Union[str, pathlib.Path],
        feature: Feature,
        check_results: List[CheckResult],
        mode: VerificationMode = VerificationMode.DIFF,
        diff: Optional[GitDiff] = None,
        timeout_ms: Optional[int] = None,
        verbose: bool = False,
    ) -> VerificationResult:
        """Judge every acceptance criterion of ``feature``.

        Args:
            project_root: Root of the project checkout
            feature: Feature whose criteria are judged
            check_results: Output of the automated checks
            mode: DIFF sends the diff and changed files; AUTONOMOUS lets the
                agent explore ``project_root`` itself
            diff: Precomputed diff context (diff mode only)
            timeout_ms: Agent timeout, defaults to the AI_VERIFICATION timeout
            verbose: Print progress

        Returns:
            A VerificationResult; never raises.
        """
        root = pathlib.Path(project_root)
        mode = VerificationMode.AUTONOMOUS if mode == VerificationMode.AUTONOMOUS else VerificationMode.DIFF
        try:
            return await self._analyze(root, feature, check_results, mode, diff, timeout_ms, verbose)
        except Exception as e:
            logger.log_error("analyzer", e, {"feature": feature.id})
            return self._failure_result(
                feature, check_results, mode, f"Verification error: {e}", diff=diff,
            )

    async def _analyze(
        self,
        root: pathlib.Path,
        feature: Feature,
        check_results: List[CheckResult],
        mode: VerificationMode,
        diff: Optional[GitDiff],
        timeout_ms: Optional[int],
        verbose: bool,
    ) -> VerificationResult:
        related: Dict[str, str] = {}
        if mode == VerificationMode.DIFF:
            if diff is None:
                diff = await git_ops.get_diff_for_verification(root)
            related = read_related_files(root, diff.files)
            prompt = build_verification_prompt(feature, diff.diff, diff.files, check_results, related)
        else:
            diff = GitDiff(diff="", files=[], commit_hash=await git_ops.get_commit_hash(root))
            prompt = build_autonomous_prompt(root, feature, check_results)

        timeout = timeout_ms or config.get_timeout("AI_VERIFICATION")
        logger.log("analyzer", "invoke", {
            "feature": feature.id,
            "mode": mode.value,
            "prompt_chars": len(prompt),
            "related_files": len(related),
        })
        if verbose:
            print(colorize(f"   AI analysis ({mode.value})...", Colors.BRIGHT_CYAN))

        agent_result, state = await self.retry_handler.run(
            lambda: self.gateway.invoke(prompt, cwd=root, timeout_ms=timeout),
            label=f"verification of {feature.id}",
        )

        if not agent_result.success:
            reason = f"AI analysis failed: {agent_result.error or 'Unknown error'}"
            return self._failure_result(
                feature, check_results, mode, reason,
                diff=diff, state=state, attempts=state.attempt,
            )

        try:
            parsed = parse_verification_response(agent_result.output, feature.acceptance)
        except ResponseParseError as e:
            logger.warning(f"[analyzer] unusable response for {feature.id}: {e}")
            return self._failure_result(
                feature, check_results, mode, f"Failed to parse AI response: {e}",
                diff=diff, state=state,
            )

        verdict = apply_safety_net(
            parsed.verdict, parsed.criterion_verdicts, self.policy.criterion_trust_threshold
        )
        if verdict != parsed.verdict:
            logger.info(f"[analyzer] downgraded '{parsed.verdict.value}' to '{verdict.value}' for {feature.id}")

        return VerificationResult(
            feature_id=feature.id,
            timestamp=utc_timestamp(),
            commit_hash=diff.commit_hash,
            check_results=list(check_results),
            criterion_verdicts=parsed.criterion_verdicts,
            verdict=verdict,
            verified_by=state.agent_used or agent_result.agent_used or "unknown",
            overall_reasoning=parsed.overall_reasoning,
            suggestions=parsed.suggestions,
            changed_files=list(diff.files),
            diff_summary=f"{len(diff.files)} files changed" if mode == VerificationMode.DIFF else "",
            code_quality_notes=parsed.code_quality_notes,
            related_files_analyzed=list(related),
            mode=mode,
        )

    @staticmethod
    def _failure_result(
        feature: Feature,
        check_results: List[CheckResult],
        mode: VerificationMode,
        reason: str,
        diff: Optional[GitDiff] = None,
        state: Optional[RetryState] = None,
        attempts: Optional[int] = None,
    ) -> VerificationResult:
        overall = reason if attempts is None else f"{reason} (after {attempts} attempt(s))"
        files = list(diff.files) if diff else []
        return VerificationResult(
            feature_id=feature.id,
            timestamp=utc_timestamp(),
            commit_hash=diff.commit_hash if diff else None,
            check_results=list(check_results),
            criterion_verdicts=unsatisfied_verdicts(feature.acceptance, reason),
            verdict=Verdict.NEEDS_REVIEW,
            verified_by=(state.agent_used if state else None) or "none",
            overall_reasoning=overall,
            changed_files=files,
            diff_summary=f"{len(files)} files changed" if mode == VerificationMode.DIFF else "",
            mode=mode,
        )
