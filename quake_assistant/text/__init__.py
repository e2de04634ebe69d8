"""模型输出后处理。

- language_filter: 基于正则的逐行语言过滤策略（启发式，非真正的语言识别）。
- sanitizer: 把原始模型文本清洗为简短、单一语言、标点规整的回复。
"""

from quake_assistant.text.language_filter import HeuristicLanguageFilter, LanguageFilter
from quake_assistant.text.sanitizer import ResponseSanitizer, SanitizerConfig, sanitize

__all__ = [
    "HeuristicLanguageFilter",
    "LanguageFilter",
    "ResponseSanitizer",
    "SanitizerConfig",
    "sanitize",
]
