"""逐行语言过滤。

判断一行是否“看起来是外语（英语）”，需要同时满足：
1. 含有至少 K 个连续 ASCII 拉丁字母组成的独立单词；
2. 不含任何土耳其语特有字符（çğıöşü 及其大写）；
3. （配置了停用词时）不含任何常见土耳其语虚词。

这只是启发式规则：全部由 ASCII 字母组成的土耳其语句子
（例如 "Deprem anen olur"）同样会被判为外语。
如需更准确的结果，可以实现 LanguageFilter 协议替换它。
"""

import re
from typing import Iterable, Optional, Pattern, Protocol


TURKISH_CHARS = "çğıöşüÇĞİÖŞÜ"

# 常见土耳其语虚词；命中任意一个即认为该行是土耳其语
TURKISH_STOPWORDS = (
    "ben", "sen", "biz", "siz", "ve", "ile", "için", "bu", "şu", "o",
    "de", "da", "ki", "ne", "ya", "ama", "fakat", "veya", "ancak",
)


class LanguageFilter(Protocol):
    def is_foreign(self, line: str) -> bool:
        ...


class HeuristicLanguageFilter:
    def __init__(self, min_latin_run: int = 3, stopwords: Iterable[str] = ()):
        if min_latin_run < 1:
            raise ValueError("min_latin_run must be >= 1")
        self._latin_run = re.compile(rf"\b[a-zA-Z]{{{min_latin_run},}}\b")
        self._native_char = re.compile(f"[{TURKISH_CHARS}]")
        words = [re.escape(w) for w in stopwords if w]
        self._stopwords: Optional[Pattern[str]] = None
        if words:
            self._stopwords = re.compile(rf"\b(?:{'|'.join(words)})\b", re.IGNORECASE)

    def is_foreign(self, line: str) -> bool:
        if not self._latin_run.search(line):
            return False
        if self._native_char.search(line):
            return False
        if self._stopwords is not None and self._stopwords.search(line):
            return False
        return True
