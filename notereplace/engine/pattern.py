"""
模式编译模块，将查询字符串与选项编译为可执行的匹配器
"""

import re
from abc import ABC, abstractmethod
from typing import Iterator

from loguru import logger

from ..model.errors import EmptyQuery, InvalidPattern
from ..model.search import Query


class IMatcher(ABC):
    """匹配器接口"""

    @abstractmethod
    def iter_spans(self, line: str) -> Iterator[tuple[int, int]]:
        """在单行文本中按顺序产出互不重叠的 [start, end) 区间

        Args:
            line: 单行文本（不含换行符）

        Returns:
            Iterator[tuple[int, int]]: 匹配区间迭代器
        """


class RegexMatcher(IMatcher):
    """正则表达式匹配器"""

    def __init__(self, compiled: re.Pattern[str]):
        self.compiled = compiled

    def iter_spans(self, line: str) -> Iterator[tuple[int, int]]:
        pos = 0
        while pos <= len(line):
            hit = self.compiled.search(line, pos)
            if hit is None:
                return
            start, end = hit.span()
            if end == start:
                # 零宽匹配（如前瞻断言）不产出，跳过一个字符继续
                pos = start + 1
                continue
            yield start, end
            pos = end


class LiteralMatcher(IMatcher):
    """字面量子串匹配器"""

    def __init__(self, needle: str, case_insensitive: bool):
        self.needle = needle
        self.case_insensitive = case_insensitive
        self._folded = needle.lower() if case_insensitive else needle
        self._fallback = re.compile(re.escape(needle), re.IGNORECASE) if case_insensitive else None

    def iter_spans(self, line: str) -> Iterator[tuple[int, int]]:
        haystack = line
        if self.case_insensitive:
            haystack = line.lower()
            if len(haystack) != len(line) and self._fallback is not None:
                # 小写化改变了长度，偏移量不再可靠
                yield from RegexMatcher(self._fallback).iter_spans(line)
                return
        cursor = 0
        while True:
            idx = haystack.find(self._folded, cursor)
            if idx < 0:
                return
            yield idx, idx + len(self._folded)
            cursor = idx + len(self._folded)


def validate_query(query: Query) -> None:
    """校验查询内容

    Raises:
        EmptyQuery: 查询为空、只有空白，或只是单个空白字符
    """
    if not query.pattern or not query.pattern.strip():
        raise EmptyQuery()


# 零宽匹配探测用的样本文本，模式自身的文本也会加入探测
_ZERO_WIDTH_SAMPLES = ("", "a", "A", "0", "_", " ", "\t", "\n", ".", "#", "aA0_ .#-")


def _matches_empty(compiled: re.Pattern[str], pattern: str) -> bool:
    """模式是否会产生零宽匹配（空字符串、单独的断言或前后瞻）"""
    for sample in (*_ZERO_WIDTH_SAMPLES, pattern):
        for hit in compiled.finditer(sample):
            if hit.end() == hit.start():
                return True
    return False


def compile_regex(query: Query) -> re.Pattern[str]:
    """编译正则模式（不校验空查询）

    Args:
        query: 查询对象，必须为正则模式

    Returns:
        re.Pattern[str]: 编译后的正则对象

    Raises:
        InvalidPattern: 模式无法编译，或可以匹配空字符串
    """
    flags = re.MULTILINE
    if query.case_insensitive:
        flags |= re.IGNORECASE

    try:
        raw = re.compile(query.pattern, flags)
    except re.error as e:
        raise InvalidPattern(f"无效的正则表达式：{query.pattern}，错误：{e}") from e

    if _matches_empty(raw, query.pattern):
        raise InvalidPattern(f"模式可以匹配空字符串：{query.pattern}", degenerate=True)

    if not query.whole_word:
        return raw
    try:
        return re.compile(rf"\b(?:{query.pattern})\b", flags)
    except re.error as e:
        # 例如开头的全局内联标志 (?i) 无法放入分组
        raise InvalidPattern(f"无法按全词匹配包装模式：{query.pattern}，错误：{e}") from e


def compile_query(query: Query) -> IMatcher:
    """将查询编译为匹配器

    Args:
        query: 查询对象

    Returns:
        IMatcher: 正则或字面量匹配器

    Raises:
        EmptyQuery: 查询为空
        InvalidPattern: 正则无效或为退化模式
    """
    validate_query(query)
    if query.use_regex:
        matcher: IMatcher = RegexMatcher(compile_regex(query))
    else:
        matcher = LiteralMatcher(query.pattern, query.case_insensitive)
    logger.debug(f"🧩 模式编译完成：{query.pattern!r}（regex={query.use_regex}）")
    return matcher


class TermTracker:
    """多子项（`|` 分隔）查询的出现情况统计"""

    def __init__(self, query: Query):
        self.query = query
        self.terms = query.terms()
        self.found: set[str] = set()
        self._regexes: dict[str, re.Pattern[str]] = {}
        if query.use_regex:
            flags = re.IGNORECASE if query.case_insensitive else 0
            for term in self.terms:
                try:
                    self._regexes[term] = re.compile(term, flags)
                except re.error:
                    # 单独无法编译的子项（如半个分组）按字面量处理
                    self._regexes[term] = re.compile(re.escape(term), flags)

    @property
    def active(self) -> bool:
        return bool(self.terms)

    def observe_fragment(self, fragment: str) -> None:
        """正则模式：检查一个匹配片段包含哪些子项"""
        for term in self.terms:
            if term not in self.found and self._regexes[term].search(fragment):
                self.found.add(term)

    def observe_line(self, line: str) -> None:
        """字面量模式：独立检查一行中出现了哪些子项"""
        haystack = line.lower() if self.query.case_insensitive else line
        for term in self.terms:
            if term in self.found:
                continue
            needle = term.lower() if self.query.case_insensitive else term
            if needle in haystack:
                self.found.add(term)

    def missing(self) -> list[str]:
        """从未出现过的子项，保持原始顺序"""
        return [term for term in self.terms if term not in self.found]
