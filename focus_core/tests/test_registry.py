import pytest

from focus_core.providers.registry import (
    DEFAULT_ROLE_CONFIG,
    ROLE_CONFIGS,
    ModelRole,
    resolve_role_config,
)


def test_known_roles():
    chat = resolve_role_config("deepseek-chat")
    assert chat.role is ModelRole.CHAT
    assert (chat.model, chat.temperature, chat.max_tokens) == ("deepseek-chat", 1.3, 300)

    reasoner = resolve_role_config("deepseek-reasoner")
    assert reasoner.role is ModelRole.REASONER
    assert (reasoner.model, reasoner.temperature, reasoner.max_tokens) == ("deepseek-reasoner", 1.0, 500)
    assert "analytical productivity expert" in reasoner.system_prompt


@pytest.mark.parametrize("key", ["gpt-4", "", "DEEPSEEK", None, 42, "deepseek-coder"])
def test_unknown_role_falls_back_to_default(key):
    assert resolve_role_config(key) == DEFAULT_ROLE_CONFIG
    assert DEFAULT_ROLE_CONFIG.role is None
    assert DEFAULT_ROLE_CONFIG.model == "deepseek-chat"
    assert "friendly productivity assistant" in DEFAULT_ROLE_CONFIG.system_prompt


def test_role_aliases():
    assert resolve_role_config("conversational") == ROLE_CONFIGS[ModelRole.CHAT]
    assert resolve_role_config("Analytical") == ROLE_CONFIGS[ModelRole.REASONER]
    assert resolve_role_config("reasoner") == ROLE_CONFIGS[ModelRole.REASONER]
    assert resolve_role_config(ModelRole.CHAT) == ROLE_CONFIGS[ModelRole.CHAT]


def test_temperature_override_is_forwarded_verbatim():
    assert resolve_role_config("deepseek-chat", 0).temperature == 0
    assert resolve_role_config("deepseek-chat", 7.5).temperature == 7.5
    assert resolve_role_config("unknown", -1).temperature == -1
    # 覆盖不影响注册表里的原始配置
    assert ROLE_CONFIGS[ModelRole.CHAT].temperature == 1.3
