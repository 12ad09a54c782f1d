#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Three-tier capability resolution.

Tiers are tried in order and the first usable one wins:

1. memory: a profile resolved for the same root within the TTL
2. disk: ``ai/capabilities.json`` when its schema matches and git shows
   none of its tracked config files changed
3. discovery: manifest heuristics, then agent-driven exploration

Failures in any tier are logged and treated as "tier unusable". ``resolve``
never raises. When discovery fails, a heuristic profile that scored below
the acceptance threshold is still returned, unpersisted; only when there is
none either does it return an all-false profile with zero confidence.
"""

import pathlib
from typing import Callable, Optional, Union

from foreman import config
from foreman.agents.gateway import AgentGateway
from foreman.cache.base import TTLCache
from foreman.capabilities import disk_cache
from foreman.capabilities.discovery import discover_with_agent
from foreman.capabilities.formatters import summarize_capabilities
from foreman.capabilities.presets import PresetDetection, detect_preset
from foreman.capabilities.staleness import is_record_stale
from foreman.config import DEFAULT_POLICY, VerificationPolicy
from foreman.debug_logger import get_logger
from foreman.errors import CacheError
from foreman.models.capability import CapabilityProfile, CapabilitySource, minimal_profile
from foreman.terminal.formatting import Colors, colorize
from foreman.tools import git_ops


logger = get_logger()


class CapabilityResolver:
    """Resolves and caches the verification commands of projects."""

    def __init__(
        self,
        gateway: Optional[AgentGateway] = None,
        policy: VerificationPolicy = DEFAULT_POLICY,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.policy = policy
        self._gateway = gateway
        self._memory = TTLCache(name="capabilities", ttl=policy.memory_cache_ttl, clock=clock)

    @property
    def gateway(self) -> AgentGateway:
        if self._gateway is None:
            self._gateway = AgentGateway()
        return self._gateway

    @staticmethod
    def _key(project_root: pathlib.Path) -> str:
        return str(pathlib.Path(project_root).resolve())

    def clear(self) -> None:
        """Forget every in-memory profile."""
        self._memory.clear()

    def invalidate(self, project_root: Union[str, pathlib.Path]) -> None:
        """Drop both the in-memory and the on-disk profile for a project."""
        root = pathlib.Path(project_root)
        self._memory.invalidate(self._key(root))
        disk_cache.invalidate_cache(root)

    async def resolve(
        self,
        project_root: Union[str, pathlib.Path],
        force: bool = False,
        force_discovery_only: bool = False,
        verbose: bool = False,
    ) -> CapabilityProfile:
        """Return the capability profile for ``project_root``.

        Args:
            project_root: Root of the project checkout
            force: Skip the memory and disk tiers
            force_discovery_only: Skip the manifest heuristics and ask the agent
            verbose: Print which tier answered

        Returns:
            A CapabilityProfile; never raises.
        """
        root = pathlib.Path(project_root)
        key = self._key(root)

        if not force:
            remembered = self._memory.get(key)
            if remembered is not None:
                self._say(verbose, "Using memory-cached capabilities")
                logger.log_capability_tier(root, "memory", remembered.confidence)
                return remembered

            cached = await self._from_disk(root)
            if cached is not None:
                self._say(verbose, "Using cached capabilities")
                logger.log_capability_tier(root, "disk", cached.confidence)
                self._memory.set(key, cached)
                return cached

        has_git = await self._has_git(root)

        weak_preset: Optional[CapabilityProfile] = None
        if self.policy.use_presets and not force_discovery_only:
            detection = self._detect_presets(root, has_git)
            preset = await self._accept_preset(root, detection)
            if preset is not None:
                self._say(verbose, f"Detected capabilities from project files ({preset.confidence:.0%})")
                logger.log_capability_tier(root, "preset", preset.confidence)
                self._memory.set(key, preset)
                return preset
            if detection is not None and detection.profile.confidence > 0:
                weak_preset = detection.profile

        self._say(verbose, "Exploring project with AI agent...")
        discovered = await self._from_discovery(root, has_git)
        if discovered is not None:
            logger.log_capability_tier(root, "discovery", discovered.confidence)
            self._memory.set(key, discovered)
            return discovered

        if weak_preset is not None:
            # Below the acceptance threshold, so never persisted
            logger.log_capability_tier(root, "preset-fallback", weak_preset.confidence)
            self._say(verbose, f"Using project-file capabilities ({weak_preset.confidence:.0%}); AI discovery failed")
            return weak_preset

        logger.log_capability_tier(root, "minimal", 0.0)
        logger.warning(f"[resolver] no tier produced a profile for {root}; using minimal profile")
        self._say(verbose, colorize("Could not detect capabilities; no checks will run", Colors.YELLOW))
        return minimal_profile(has_git=has_git)

    @staticmethod
    def _say(verbose: bool, message: str) -> None:
        logger.info(f"[resolver] {message}")
        if verbose:
            print(f"  {message}")

    async def _has_git(self, root: pathlib.Path) -> bool:
        try:
            return await git_ops.is_git_repo(root)
        except Exception as e:
            logger.log_error("resolver", e, {"stage": "git"})
            return False

    async def _from_disk(self, root: pathlib.Path) -> Optional[CapabilityProfile]:
        try:
            record = disk_cache.load_cache_record(root)
        except CacheError as e:
            logger.warning(f"[resolver] ignoring capability cache: {e}")
            return None
        except Exception as e:
            logger.log_error("resolver", e, {"stage": "disk"})
            return None

        if record is None:
            return None

        try:
            if await is_record_stale(root, record):
                logger.info("[resolver] capability cache is stale")
                return None
        except Exception as e:
            logger.log_error("resolver", e, {"stage": "staleness"})
            return None

        if record.profile.confidence < self.policy.cached_profile_floor:
            logger.info(
                f"[resolver] cached confidence {record.profile.confidence:.2f} below "
                f"{self.policy.cached_profile_floor:.2f}; re-discovering"
            )
            return None

        return record.profile.with_source(CapabilitySource.CACHED)

    @staticmethod
    def _detect_presets(root: pathlib.Path, has_git: bool) -> Optional[PresetDetection]:
        try:
            return detect_preset(root, has_git=has_git)
        except Exception as e:
            logger.log_error("resolver", e, {"stage": "presets"})
            return None

    async def _accept_preset(
        self, root: pathlib.Path, detection: Optional[PresetDetection]
    ) -> Optional[CapabilityProfile]:
        if detection is None:
            return None

        profile = detection.profile
        if profile.confidence < self.policy.preset_acceptance_threshold:
            logger.info(
                f"[resolver] preset confidence {profile.confidence:.2f} below "
                f"{self.policy.preset_acceptance_threshold:.2f}"
            )
            return None

        await self._persist(root, profile, detection.tracked_files)
        return profile

    async def _from_discovery(self, root: pathlib.Path, has_git: bool) -> Optional[CapabilityProfile]:
        try:
            discovered = await discover_with_agent(
                root,
                self.gateway,
                has_git=has_git,
                timeout_ms=config.get_timeout("AI_CAPABILITY_DISCOVERY"),
            )
        except Exception as e:
            logger.log_error("resolver", e, {"stage": "discovery"})
            return None

        if discovered is None:
            return None

        await self._persist(root, discovered.profile, discovered.config_files)
        return discovered.profile

    async def _persist(self, root: pathlib.Path, profile: CapabilityProfile, tracked_files) -> None:
        try:
            commit_hash = await git_ops.get_commit_hash(root)
            disk_cache.save_cache_record(root, profile, commit_hash, tracked_files)
            logger.info(f"[resolver] saved {summarize_capabilities(profile)}")
        except Exception as e:
            logger.log_error("resolver", e, {"stage": "persist"})
