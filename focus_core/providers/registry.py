"""模型角色与配置。

本模块将"角色"与具体的模型参数解耦：

- 角色（ModelRole）：调用方使用的封闭枚举，目前只有对话（CHAT）与分析（REASONER）两种。
- ModelRoleConfig：该角色对应的 DeepSeek 模型 ID、温度、token 上限与 system prompt。

未知角色不会报错，而是落到 DEFAULT_ROLE_CONFIG。"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Mapping, Optional

from focus_core.prompts import load_system_prompt


class ModelRole(str, Enum):
    """封闭的角色枚举，值即 DeepSeek 的模型 ID。"""

    CHAT = "deepseek-chat"
    REASONER = "deepseek-reasoner"

    @classmethod
    def parse(cls, key: Optional[str]) -> Optional["ModelRole"]:
        """把外部传入的角色名解析为枚举，无法识别时返回 None。

        同时接受模型 ID（deepseek-chat）、枚举名（chat）与语义别名（conversational）。
        """

        if isinstance(key, cls):
            return key
        if not isinstance(key, str):
            return None
        normalized = key.strip().lower()
        for role in cls:
            if normalized in (role.value, role.name.lower()):
                return role
        return _ROLE_ALIASES.get(normalized)


_ROLE_ALIASES: Dict[str, ModelRole] = {
    "conversational": ModelRole.CHAT,
    "analytical": ModelRole.REASONER,
}


@dataclass(frozen=True)
class ModelRoleConfig:
    """单个角色的不可变配置。role 为 None 表示默认配置。"""

    role: Optional[ModelRole]
    model: str
    temperature: float
    max_tokens: int
    system_prompt: str

    def with_temperature(self, temperature: Optional[float]) -> "ModelRoleConfig":
        """返回应用了温度覆盖的新配置；不做范围校验，原样透传。"""

        if temperature is None:
            return self
        return replace(self, temperature=temperature)


ROLE_CONFIGS: Mapping[ModelRole, ModelRoleConfig] = {
    ModelRole.CHAT: ModelRoleConfig(
        role=ModelRole.CHAT,
        model="deepseek-chat",
        temperature=1.3,
        max_tokens=300,
        system_prompt=load_system_prompt("chat"),
    ),
    ModelRole.REASONER: ModelRoleConfig(
        role=ModelRole.REASONER,
        model="deepseek-reasoner",
        temperature=1.0,
        max_tokens=500,
        system_prompt=load_system_prompt("reasoner"),
    ),
}

DEFAULT_ROLE_CONFIG = ModelRoleConfig(
    role=None,
    model="deepseek-chat",
    temperature=1.3,
    max_tokens=300,
    system_prompt=load_system_prompt("default"),
)


def get_role_config(role: Optional[ModelRole]) -> ModelRoleConfig:
    """按枚举取配置，None 走默认分支。"""

    if role is None:
        return DEFAULT_ROLE_CONFIG
    return ROLE_CONFIGS[role]


def resolve_role_config(key: Optional[str], temperature: Optional[float] = None) -> ModelRoleConfig:
    """Request Builder 入口：角色名 + 可选温度覆盖 -> ModelRoleConfig。"""

    return get_role_config(ModelRole.parse(key)).with_temperature(temperature)
