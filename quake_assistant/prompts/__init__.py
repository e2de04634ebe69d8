"""提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取各助手配置的文本：

- <profile>_system.md: 固定的 system 人设提示词（会话第 0 条消息）。
- <profile>_instruction.md: 每轮包裹用户问题的指令模板，含 {utterance} 占位符。
"""

from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


def _read(profile: str, kind: str, locale: str) -> str:
    fname = PROMPTS_DIR / locale / f"{profile.lower()}_{kind}.md"
    return fname.read_text(encoding="utf-8").strip()


def load_system_prompt(profile: str, locale: str = "tr") -> str:
    """根据助手配置名和语言加载 system 提示词文本。"""

    return _read(profile, "system", locale)


def load_instruction_template(profile: str, locale: str = "tr") -> str:
    return _read(profile, "instruction", locale)
