"""提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 markdown 文本：

- ``<role>_system.md``: 各模型角色的 system prompt。
- ``<name>_user.md``: 各入口使用的用户提示词模板（str.format 占位符）。
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def _read_prompt(locale: str, fname: str) -> str:
    return (PROMPTS_DIR / locale / fname).read_text(encoding="utf-8").strip()


def load_system_prompt(role: str, locale: str = "en") -> str:
    """根据角色名（chat / reasoner / default）加载 system prompt 文本。"""

    return _read_prompt(locale, f"{role}_system.md")


def render_user_prompt(name: str, locale: str = "en", **values) -> str:
    """加载用户提示词模板并填充占位符。"""

    template = _read_prompt(locale, f"{name}_user.md")
    return template.format(**values)
