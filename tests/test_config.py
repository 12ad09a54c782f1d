"""Tests for timeouts, environment overrides and the policy file."""

import pytest

from foreman import config
from foreman.config import DEFAULT_POLICY, VerificationPolicy, load_policy


class TestTimeouts:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FOREMAN_TIMEOUT_VERIFY", raising=False)
        monkeypatch.delenv("FOREMAN_TIMEOUT_CAPABILITY", raising=False)

        assert config.get_timeout("AI_VERIFICATION") == 300000
        assert config.get_timeout("AI_CAPABILITY_DISCOVERY") == 120000

    def test_unknown_key_uses_default_timeout(self):
        assert config.get_timeout("SOMETHING_ELSE") == config.TIMEOUT_DEFAULTS["AI_DEFAULT"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("FOREMAN_TIMEOUT_VERIFY", "45000")
        assert config.get_timeout("AI_VERIFICATION") == 45000

    @pytest.mark.parametrize("raw", ["abc", "-5", "0", "  "])
    def test_invalid_env_values_are_ignored(self, monkeypatch, raw):
        monkeypatch.setenv("FOREMAN_TIMEOUT_CAPABILITY", raw)
        assert config.get_timeout("AI_CAPABILITY_DISCOVERY") == 120000

    def test_check_limits(self, monkeypatch):
        monkeypatch.setenv("FOREMAN_CHECK_TIMEOUT_MS", "1000")
        monkeypatch.setenv("FOREMAN_MAX_BUFFER_BYTES", "nope")

        assert config.get_check_timeout_ms() == 1000
        assert config.get_max_buffer_bytes() == config.DEFAULT_MAX_BUFFER_BYTES


def test_agent_priority(monkeypatch):
    monkeypatch.delenv("FOREMAN_AGENTS", raising=False)
    assert config.get_agent_priority() == ["claude", "codex", "gemini"]

    monkeypatch.setenv("FOREMAN_AGENTS", " Gemini, claude ,")
    assert config.get_agent_priority() == ["gemini", "claude"]


class TestLoadPolicy:
    def write_policy(self, root, text):
        path = root / "ai" / "foreman.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_policy(tmp_path) == DEFAULT_POLICY

    def test_defaults(self):
        policy = VerificationPolicy()
        assert policy.criterion_trust_threshold == 0.7
        assert policy.preset_acceptance_threshold == 0.8
        assert policy.cached_profile_floor == 0.5
        assert policy.memory_cache_ttl == 60.0
        assert policy.retry_max_attempts == 3

    def test_overrides_and_unknown_keys(self, tmp_path):
        self.write_policy(tmp_path, "\n".join([
            "criterion_trust_threshold: 0.85",
            "retry_max_attempts: 5",
            "use_presets: false",
            "something_new: 1",
            "retry_base_delay: fast",
        ]))

        policy = load_policy(tmp_path)

        assert policy.criterion_trust_threshold == 0.85
        assert policy.retry_max_attempts == 5
        assert policy.use_presets is False
        assert policy.retry_base_delay == DEFAULT_POLICY.retry_base_delay

    @pytest.mark.parametrize("raw, expected", [
        ('"false"', False),
        ("'off'", False),
        ("no", False),
        ('"True"', True),
        ('"maybe"', True),
        ("0.5", True),
    ])
    def test_boolean_fields_parse_strictly(self, tmp_path, raw, expected):
        self.write_policy(tmp_path, f"use_presets: {raw}\n")
        assert load_policy(tmp_path).use_presets is expected

    @pytest.mark.parametrize("text", ["key: [unclosed", "- just\n- a list\n", ""])
    def test_unusable_files_give_defaults(self, tmp_path, text):
        self.write_policy(tmp_path, text)
        assert load_policy(tmp_path) == DEFAULT_POLICY
