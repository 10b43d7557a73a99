"""
查找替换相关数据模型。

This module provides the data models shared by the search engine, the batch
replace engine and the undo history.
"""

import time
from dataclasses import dataclass, field
from enum import Enum


class Scope(str, Enum):
    """搜索范围"""

    DOCUMENT = "document"
    """当前活动文档"""
    VAULT = "vault"
    """全部文档"""
    SELECTION = "selection"
    """当前文档中的选区"""


@dataclass(frozen=True)
class Query:
    """查询数据模型（不可变）

    注意：
    1. use_regex 为 False 时 whole_word 被忽略
    2. pattern 中的 `|` 只影响“未找到”的子项统计，不改变匹配语义
    """
    pattern: str  # 原始查询字符串
    use_regex: bool = True  # 是否为正则表达式
    case_insensitive: bool = False  # 是否忽略大小写
    whole_word: bool = False  # 是否全词匹配（仅正则模式有效）

    def terms(self) -> list[str]:
        """按 `|` 拆分出的子项列表，无 `|` 时返回空列表"""
        if "|" not in self.pattern:
            return []
        return [term for term in self.pattern.split("|") if term]


@dataclass(frozen=True)
class Selection:
    """选区范围（半开区间，行号从0开始）"""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def contains(self, line: int, start: int, end: int) -> bool:
        """判断 [start, end) 是否完全位于选区内"""
        if line < self.start_line or line > self.end_line:
            return False
        if line == self.start_line and start < self.start_column:
            return False
        if line == self.end_line and end > self.end_column:
            return False
        return True


@dataclass
class Match:
    """单个匹配信息"""
    path: str  # 所属文档路径
    line: int  # 行号（从0开始）
    start: int  # 起始列（包含）
    end: int  # 结束列（不包含）
    text: str  # 匹配到的文本
    line_text: str = ""  # 所在行的完整文本，用于预览上下文
    included: bool = True  # 是否参与替换

    @property
    def id(self) -> str:
        """由 (path, line, start) 确定的稳定标识"""
        return f"{self.path}:{self.line}:{self.start}"

    def sort_key(self) -> tuple[str, int, int]:
        return (self.path, self.line, self.start)


@dataclass
class ScanOutcome:
    """单个文档的扫描结果"""
    matches: list[Match]  # 按出现顺序排列的匹配
    found_terms: set[str] = field(default_factory=set)  # 本文档中确认出现的子项
    truncated: bool = False  # 是否因达到上限而提前停止

    @property
    def count(self) -> int:
        return len(self.matches)


@dataclass
class SearchOutcome:
    """一次完整搜索的汇总结果"""
    generation: int  # 搜索代数
    total_matches: int  # 匹配总数
    documents_searched: int  # 已搜索的文档数
    documents_with_matches: int  # 有匹配的文档数
    truncated: bool = False  # 结果是否被截断
    missing_terms: list[str] = field(default_factory=list)  # 从未出现的子项
    failed_paths: list[str] = field(default_factory=list)  # 读取失败的文档
    stale: bool = False  # 是否已被更新的搜索取代


@dataclass
class DocumentChange:
    """单个文档的修改记录"""
    path: str
    before: str
    after: str
    replacements: int = 0


@dataclass
class BatchResult:
    """批量替换结果"""
    changes: list[DocumentChange]  # 实际写入的文档修改
    total_replacements: int  # 替换总数
    documents_touched: int = 0  # 尝试处理的文档数
    failed_paths: list[str] = field(default_factory=list)  # 读写失败的文档
    cancelled: bool = False  # 是否在文档之间被取消


@dataclass
class UndoEntry:
    """撤销历史条目，记录一次批量替换"""
    scope: Scope
    count: int
    query: Query
    template: str
    changes: list[DocumentChange]
    timestamp: float = field(default_factory=time.time)


@dataclass
class UndoOutcome:
    """撤销结果"""
    entry: UndoEntry
    reverted_paths: list[str] = field(default_factory=list)
    failed_paths: list[str] = field(default_factory=list)
