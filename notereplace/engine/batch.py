"""
批量替换模块，将启用的匹配按文档分组后一次性写回
"""

import asyncio
from itertools import groupby

from loguru import logger

from ..model.search import BatchResult, DocumentChange, Match, Query
from ..tool.host import IDocumentHost
from .preview import ReplacementPreviewer


def splice_matches(content: str, matches: list[Match], replacements: dict[str, str]) -> tuple[str, int]:
    """在内存中对单个文档应用替换

    替换按 (行号, 起始列) 从后往前执行，已处理的替换不会使前面匹配的偏移失效。

    Args:
        content: 文档当前内容
        matches: 属于该文档的匹配
        replacements: 匹配标识到替换文本的映射

    Returns:
        tuple[str, int]: 新内容和实际应用的替换数
    """
    lines = content.split("\n")
    applied = 0
    for match in sorted(matches, key=lambda m: (m.line, m.start), reverse=True):
        if match.line >= len(lines):
            logger.warning(f"⚠️ 匹配已过期（行号超出范围），跳过：{match.id}")
            continue
        line = lines[match.line]
        if line[match.start:match.end] != match.text:
            logger.warning(f"⚠️ 匹配已过期（内容已变化），跳过：{match.id}")
            continue
        lines[match.line] = line[:match.start] + replacements[match.id] + line[match.end:]
        applied += 1
    return "\n".join(lines), applied


class BatchReplaceEngine:
    """批量替换引擎

    每个文档独立执行“读取-修改-写入”，单个文档失败不会回滚或中断其他文档。
    """

    def __init__(self, host: IDocumentHost, previewer: ReplacementPreviewer | None = None) -> None:
        self._host = host
        self._previewer = previewer or ReplacementPreviewer()

    async def apply(
        self,
        approved: list[Match],
        template: str,
        query: Query,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchResult:
        """应用所有启用的匹配

        Args:
            approved: 启用的匹配
            template: 替换模板（已处理控制字符）
            query: 生成匹配的查询
            cancel_event: 设置后在下一个文档开始前停止

        Returns:
            BatchResult: 实际修改的文档及替换总数
        """
        result = BatchResult(changes=[], total_replacements=0)
        ordered = sorted(approved, key=Match.sort_key)

        for path, group in groupby(ordered, key=lambda m: m.path):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("⏹️ 批量替换已取消")
                result.cancelled = True
                break

            matches = list(group)
            result.documents_touched += 1
            replacements = {m.id: self._previewer.preview(m, template, query) for m in matches}

            try:
                before = await self._host.read_content(path)
            except (FileNotFoundError, RuntimeError, OSError) as e:
                logger.error(f"❌ 读取文档失败，跳过：{path}，错误：{e}")
                result.failed_paths.append(path)
                continue

            after, applied = splice_matches(before, matches, replacements)
            if after == before:
                logger.debug(f"文档内容未变化，不写入：{path}")
                continue

            try:
                await self._host.write_content(path, after)
            except (FileNotFoundError, RuntimeError, OSError) as e:
                logger.error(f"❌ 写入文档失败，跳过：{path}，错误：{e}")
                result.failed_paths.append(path)
                continue

            result.changes.append(DocumentChange(path=path, before=before, after=after, replacements=applied))
            result.total_replacements += applied
            logger.debug(f"✏️ 已修改 {path}（{applied} 处替换）")

        logger.info(
            f"✏️ 批量替换完成：{result.total_replacements} 处替换，"
            f"{len(result.changes)}/{result.documents_touched} 个文档")
        return result
