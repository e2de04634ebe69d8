"""模型回复清洗流水线。

sanitize(raw, config) 是一个纯函数：相同输入永远得到相同输出，且不会抛出异常。
各阶段按顺序执行：

1. 去除首尾空白。
2. 去掉“Cevap:”“Türkçe:”之类的填充前缀（不区分大小写，反复去除直到不再匹配）。
3. 逐行语言过滤，丢弃看起来是外语的行。
4. 以语气词（如 "Tabii"）开头且多于两个词的行，删掉前两个词。
5. 用换行重新拼接并去除首尾空白。
6. 超过字符阈值时按句号截断：累计句子直到达到句数上限或累计长度上限。
7. 标点与空白规整（固定的字面替换表）。
8. （可选）修复分解形式/错误编码的土耳其字母。
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from quake_assistant.text.language_filter import HeuristicLanguageFilter, LanguageFilter


BASIC_PUNCTUATION_RULES: Tuple[Tuple[str, str], ...] = (
    (" ,", ","),
    (" .", "."),
    ("..", "."),
    ("  ", " "),
)

FULL_PUNCTUATION_RULES: Tuple[Tuple[str, str], ...] = BASIC_PUNCTUATION_RULES + (
    (" !", "!"),
    (" ?", "?"),
    ("( ", "("),
    (" )", ")"),
)

# 基础字母 + 组合附加符号 -> 预组合的土耳其字母
TURKISH_DIACRITIC_REPAIRS: Tuple[Tuple[str, str], ...] = (
    ("i\u0307", "i"),
    ("\u0131\u0307", "i"),
    ("I\u0307", "\u0130"),
    ("g\u0303", "\u011f"),
    ("G\u0303", "\u011e"),
    ("g\u0306", "\u011f"),
    ("G\u0306", "\u011e"),
    ("s\u0328", "\u015f"),
    ("S\u0328", "\u015e"),
    ("s\u0327", "\u015f"),
    ("S\u0327", "\u015e"),
    ("c\u0328", "\u00e7"),
    ("C\u0328", "\u00c7"),
    ("c\u0327", "\u00e7"),
    ("C\u0327", "\u00c7"),
)


@dataclass(frozen=True)
class SanitizerConfig:
    """清洗参数，不同助手配置取值不同。"""

    prefixes: Tuple[str, ...] = ("türkçe:", "turkish:")
    min_latin_run: int = 4
    stopwords: Tuple[str, ...] = ()
    filler_words: Tuple[str, ...] = ()
    truncate_threshold: int = 200
    max_sentences: int = 3
    max_running_length: int = 180
    punctuation_rules: Tuple[Tuple[str, str], ...] = BASIC_PUNCTUATION_RULES
    diacritic_repairs: Tuple[Tuple[str, str], ...] = field(default=())


class ResponseSanitizer:
    def __init__(self, config: SanitizerConfig, language_filter: Optional[LanguageFilter] = None):
        self._config = config
        self._filter = language_filter or HeuristicLanguageFilter(
            min_latin_run=config.min_latin_run,
            stopwords=config.stopwords,
        )

    @property
    def config(self) -> SanitizerConfig:
        return self._config

    def sanitize(self, raw: Optional[str]) -> str:
        if not raw:
            return ""
        text = self._strip_prefixes(raw.strip())
        lines = []
        for line in text.splitlines():
            stripped = line.strip()
            if not stripped or self._filter.is_foreign(stripped):
                continue
            lines.append(self._trim_filler(stripped))
        text = "\n".join(lines).strip()
        if len(text) > self._config.truncate_threshold:
            text = self._truncate(text)
        text = self._normalize_punctuation(text)
        for old, new in self._config.diacritic_repairs:
            text = text.replace(old, new)
        return text

    def _strip_prefixes(self, text: str) -> str:
        changed = True
        while changed and text:
            changed = False
            for prefix in self._config.prefixes:
                if text[: len(prefix)].lower() == prefix:
                    text = text[len(prefix):].strip()
                    changed = True
        return text

    def _normalize_punctuation(self, text: str) -> str:
        # 反复替换直到不再变化，"..." 和 "  ." 这类连续残留才能一次清干净
        previous = None
        while text != previous:
            previous = text
            for old, new in self._config.punctuation_rules:
                text = text.replace(old, new)
        return text

    def _trim_filler(self, line: str) -> str:
        if not self._config.filler_words:
            return line
        words = line.split(" ")
        first = words[0].rstrip(",.!").lower()
        if first in self._config.filler_words and len(words) > 2:
            return " ".join(words[2:])
        return line

    def _truncate(self, text: str) -> str:
        pieces = []
        length = 0
        for sentence in text.split("."):
            trimmed = sentence.strip()
            if not trimmed:
                continue
            if len(pieces) >= self._config.max_sentences or length > self._config.max_running_length:
                break
            piece = trimmed + ". "
            pieces.append(piece)
            length += len(piece)
        return "".join(pieces).rstrip()


def sanitize(raw: Optional[str], config: SanitizerConfig) -> str:
    """便捷函数：用给定配置清洗一次文本。"""

    return ResponseSanitizer(config).sanitize(raw)
