"""Tests for three-tier capability resolution."""

import json

import pytest

from foreman.agents.base import AgentResult
from foreman.capabilities import disk_cache
from foreman.capabilities.resolver import CapabilityResolver
from foreman.config import VerificationPolicy
from foreman.models.capability import CapabilityProfile, CapabilitySource


class FakeGateway:
    def __init__(self, result=None):
        self.result = result or AgentResult(False, error="No AI agents available")
        self.calls = 0

    async def invoke(self, prompt, cwd=None, timeout_ms=None):
        self.calls += 1
        return self.result


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def make_vitest_project(root):
    (root / "package.json").write_text(json.dumps({
        "scripts": {"test": "vitest run"},
        "devDependencies": {"vitest": "^1.0.0"},
    }))
    (root / "tsconfig.json").write_text("{}")


class TestMemoryTier:
    @pytest.mark.asyncio
    async def test_second_resolve_is_served_from_memory(self, tmp_path):
        make_vitest_project(tmp_path)
        gateway = FakeGateway()
        resolver = CapabilityResolver(gateway=gateway)

        first = await resolver.resolve(tmp_path)
        second = await resolver.resolve(tmp_path)

        assert first.source == CapabilitySource.PRESET
        assert second is first
        assert gateway.calls == 0

    @pytest.mark.asyncio
    async def test_memory_entry_expires(self, tmp_path):
        make_vitest_project(tmp_path)
        clock = FakeClock()
        resolver = CapabilityResolver(gateway=FakeGateway(), clock=clock)

        first = await resolver.resolve(tmp_path)
        clock.now += 61
        second = await resolver.resolve(tmp_path)

        assert second is not first
        assert second.test_command == first.test_command

    @pytest.mark.asyncio
    async def test_force_bypasses_memory(self, tmp_path):
        make_vitest_project(tmp_path)
        resolver = CapabilityResolver(gateway=FakeGateway())

        first = await resolver.resolve(tmp_path)
        forced = await resolver.resolve(tmp_path, force=True)

        assert forced is not first


class TestDiskTier:
    @pytest.mark.asyncio
    async def test_fresh_disk_cache_is_reused(self, git_repo, commit):
        make_vitest_project(git_repo)
        commit(git_repo, "initial")

        await CapabilityResolver(gateway=FakeGateway()).resolve(git_repo)
        assert disk_cache.cache_path(git_repo).exists()

        profile = await CapabilityResolver(gateway=FakeGateway()).resolve(git_repo)

        assert profile.source == CapabilitySource.CACHED
        assert profile.test_command == "vitest run"
        assert profile.has_git

    @pytest.mark.asyncio
    async def test_low_confidence_cache_is_rediscovered(self, git_repo, commit):
        make_vitest_project(git_repo)
        head = commit(git_repo, "initial")
        weak = CapabilityProfile(has_git=True, languages=["typescript"], source=CapabilitySource.AI_DISCOVERED, confidence=0.3)
        disk_cache.save_cache_record(git_repo, weak, head, ["package.json"])

        profile = await CapabilityResolver(gateway=FakeGateway()).resolve(git_repo)

        assert profile.source == CapabilitySource.PRESET
        assert profile.has_tests

    @pytest.mark.asyncio
    async def test_corrupt_cache_is_ignored(self, tmp_path):
        make_vitest_project(tmp_path)
        path = disk_cache.cache_path(tmp_path)
        path.parent.mkdir()
        path.write_text("{oops")

        profile = await CapabilityResolver(gateway=FakeGateway()).resolve(tmp_path)

        assert profile.source == CapabilitySource.PRESET


class TestDiscoveryTier:
    @pytest.mark.asyncio
    async def test_agent_discovery_when_presets_are_weak(self, tmp_path):
        answer = {
            "languages": ["elixir"],
            "configFiles": ["mix.exs"],
            "test": {"available": True, "command": "mix test", "confidence": 0.9},
        }
        gateway = FakeGateway(AgentResult(True, output=json.dumps(answer), agent_used="claude"))

        profile = await CapabilityResolver(gateway=gateway).resolve(tmp_path)

        assert gateway.calls == 1
        assert profile.source == CapabilitySource.AI_DISCOVERED
        assert profile.test_command == "mix test"
        record = disk_cache.load_cache_record(tmp_path)
        assert record.tracked_files == ["mix.exs"]

    @pytest.mark.asyncio
    async def test_presets_can_be_disabled(self, tmp_path):
        make_vitest_project(tmp_path)
        answer = {"test": {"available": True, "command": "make test", "confidence": 0.9}}
        gateway = FakeGateway(AgentResult(True, output=json.dumps(answer), agent_used="codex"))
        resolver = CapabilityResolver(gateway=gateway, policy=VerificationPolicy(use_presets=False))

        profile = await resolver.resolve(tmp_path)

        assert profile.test_command == "make test"

    @pytest.mark.asyncio
    async def test_nothing_works_returns_minimal_profile(self, tmp_path):
        profile = await CapabilityResolver(gateway=FakeGateway()).resolve(tmp_path)

        assert profile.confidence == 0.0
        assert not profile.has_tests
        assert not profile.has_lint
        assert not disk_cache.cache_path(tmp_path).exists()

    @pytest.mark.asyncio
    async def test_weak_preset_survives_failed_discovery(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[tool.mypy]\nstrict = true\n")
        gateway = FakeGateway()
        resolver = CapabilityResolver(gateway=gateway)

        profile = await resolver.resolve(tmp_path)

        assert gateway.calls == 1
        assert profile.source == CapabilitySource.PRESET
        assert profile.has_type_check
        assert profile.type_check_command == "mypy ."
        assert 0 < profile.confidence < 0.8
        assert not disk_cache.cache_path(tmp_path).exists()

        await resolver.resolve(tmp_path)
        assert gateway.calls == 2


@pytest.mark.asyncio
async def test_invalidate_drops_memory_and_disk(tmp_path):
    make_vitest_project(tmp_path)
    resolver = CapabilityResolver(gateway=FakeGateway())
    first = await resolver.resolve(tmp_path)
    assert disk_cache.cache_path(tmp_path).exists()

    resolver.invalidate(tmp_path)

    assert not disk_cache.cache_path(tmp_path).exists()
    assert await resolver.resolve(tmp_path) is not first
