"""
文档扫描模块，按行对文档应用匹配器并产出带位置信息的匹配

扫描规则：
1. 文档内容按 `\\n` 切分，末尾换行产生一个空行元素
2. 同一行内从上一个匹配的结尾继续搜索，匹配互不重叠且起点严格递增
3. 达到剩余配额后再发现匹配即标记截断，并停止整个扫描
4. 查询包含 `|` 时，额外统计各子项是否在语料中出现过
"""

from loguru import logger

from ..model.search import Match, Query, ScanOutcome, Selection
from .pattern import IMatcher, TermTracker, compile_query


class MatchScanner:
    """单次搜索使用的扫描器，在多个文档之间共享子项统计"""

    def __init__(self, query: Query, selection: Selection | None = None):
        """初始化扫描器

        Args:
            query: 查询对象
            selection: 选区范围，仅保留完全落在选区内的匹配

        Raises:
            EmptyQuery: 查询为空
            InvalidPattern: 模式无效或为退化模式
        """
        self.query = query
        self.selection = selection
        self.matcher: IMatcher = compile_query(query)
        self.tracker = TermTracker(query)

    def scan(self, path: str, content: str, remaining_budget: int) -> ScanOutcome:
        """扫描单个文档

        Args:
            path: 文档路径
            content: 文档完整内容（不会被修改）
            remaining_budget: 本次搜索还允许收集的匹配数

        Returns:
            ScanOutcome: 匹配列表、本文档出现的子项以及截断标记
        """
        outcome = ScanOutcome(matches=[])
        before = set(self.tracker.found)

        for line_no, line in enumerate(content.split("\n")):
            if self.selection is not None and not (
                self.selection.start_line <= line_no <= self.selection.end_line
            ):
                continue

            if self.tracker.active and not self.query.use_regex:
                self.tracker.observe_line(line)

            for start, end in self.matcher.iter_spans(line):
                if self.selection is not None and not self.selection.contains(line_no, start, end):
                    continue
                if len(outcome.matches) >= remaining_budget:
                    outcome.truncated = True
                    break
                fragment = line[start:end]
                if self.tracker.active and self.query.use_regex:
                    self.tracker.observe_fragment(fragment)
                outcome.matches.append(Match(
                    path=path,
                    line=line_no,
                    start=start,
                    end=end,
                    text=fragment,
                    line_text=line,
                ))

            if outcome.truncated:
                logger.debug(f"✂️ 达到匹配上限，停止扫描：{path} 第 {line_no} 行")
                break

        outcome.found_terms = self.tracker.found - before
        return outcome

    def missing_terms(self) -> list[str]:
        """整个搜索结束后仍未出现的子项"""
        return self.tracker.missing()
