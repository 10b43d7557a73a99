"""
匹配索引模块，保存一次搜索得到的全部匹配及其启用状态
"""

from typing import Iterator

from loguru import logger

from ..model.search import Match


class MatchIndex:
    """一次搜索的匹配集合

    核心功能：
    1. 按 (路径, 行号, 起始列) 的规范顺序保存匹配，标识在本次搜索内唯一
    2. 支持按标识切换启用状态，未知标识直接忽略
    3. 支持扫描进行中的增量读取（slice），扫描完成后调用 finalize 恢复规范顺序
    """

    def __init__(self, generation: int = 0) -> None:
        self.generation = generation
        self.truncated = False
        self._matches: list[Match] = []
        self._by_id: dict[str, Match] = {}
        self._finalized = False

    def __len__(self) -> int:
        return len(self._matches)

    def __iter__(self) -> Iterator[Match]:
        return iter(self._matches)

    def add(self, match: Match) -> None:
        """追加一个匹配

        Raises:
            ValueError: 标识在本次搜索中已存在
        """
        if match.id in self._by_id:
            raise ValueError(f"匹配标识重复：{match.id}")
        if self._matches and match.sort_key() < self._matches[-1].sort_key():
            self._finalized = False
        self._matches.append(match)
        self._by_id[match.id] = match

    def extend(self, matches: list[Match]) -> None:
        for match in matches:
            self.add(match)

    def get(self, match_id: str) -> Match | None:
        return self._by_id.get(match_id)

    def toggle_include(self, match_id: str, included: bool) -> bool:
        """设置匹配的启用状态

        Args:
            match_id: 匹配标识
            included: 是否参与替换

        Returns:
            bool: 标识存在时返回 True；过期标识为空操作并返回 False
        """
        match = self._by_id.get(match_id)
        if match is None:
            logger.debug(f"忽略未知匹配标识：{match_id}")
            return False
        match.included = included
        return True

    def set_all_included(self, included: bool) -> None:
        """全选或全不选"""
        for match in self._matches:
            match.included = included

    def finalize(self) -> None:
        """扫描完成后按规范顺序排序"""
        if not self._finalized:
            self._matches.sort(key=Match.sort_key)
            self._finalized = True

    def approved_matches(self) -> list[Match]:
        """按规范顺序返回所有启用的匹配"""
        self.finalize()
        return [match for match in self._matches if match.included]

    def slice(self, start: int, end: int) -> list[Match]:
        """读取 [start, end) 区间的匹配，用于分页渲染"""
        return self._matches[start:end]

    def paths(self) -> list[str]:
        """有匹配的文档路径，按出现顺序去重"""
        return list(dict.fromkeys(match.path for match in self._matches))

    def counts_by_path(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for match in self._matches:
            counts[match.path] = counts.get(match.path, 0) + 1
        return counts
