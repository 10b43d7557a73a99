"""
查找替换面板会话

该模块把扫描、索引、预览、批量替换和撤销串联为一个面板实例的完整流程：
1. 查询变化经防抖后触发搜索，"立即搜索"会取消待执行的防抖任务
2. 每次搜索分配单调递增的代数，过期搜索的结果不会覆盖新结果
3. 多文档扫描在每个文档之后让出事件循环，并按页暴露增量结果
4. 替换完成后记录撤销条目，撤销时逐个文档写回原内容
"""

import asyncio
from typing import AsyncIterator

from loguru import logger

from ..engine.batch import BatchReplaceEngine
from ..engine.history import UndoHistory
from ..engine.index import MatchIndex
from ..engine.preview import PreviewContext, ReplacementPreviewer, apply_control_sequences
from ..engine.scanner import MatchScanner
from ..model.errors import FindReplaceError, UndoEmpty
from ..model.search import (
    BatchResult, Match, Query, Scope, SearchOutcome, Selection, UndoEntry, UndoOutcome
)
from ..model.setting import PanelSettings, Settings, get_settings
from ..tool.host import IDocumentHost
from ..utils.debounce import CancelToken, Debouncer


class ScanRun:
    """一次搜索的执行过程，通过 pages() 逐页产出匹配"""

    def __init__(
        self,
        session: "FindReplaceSession",
        generation: int,
        scanner: MatchScanner,
        paths: list[str],
    ) -> None:
        self.generation = generation
        self.index = MatchIndex(generation)
        self.outcome = SearchOutcome(
            generation=generation, total_matches=0, documents_searched=0, documents_with_matches=0
        )
        self._session = session
        self._scanner = scanner
        self._paths = sorted(paths)

    def is_current(self) -> bool:
        return self._session.generation == self.generation

    async def pages(self) -> AsyncIterator[list[Match]]:
        """扫描全部文档并按页产出新匹配

        Returns:
            AsyncIterator[list[Match]]: 每页最多 page_size 个匹配
        """
        page_size = self._session.settings.page_size
        cap = self._session.settings.max_matches
        exposed = 0

        for path in self._paths:
            if not self.is_current():
                break
            try:
                content = await self._session.host.read_content(path)
            except (FileNotFoundError, RuntimeError, OSError) as e:
                logger.warning(f"⚠️ 读取文档失败，跳过：{path}，错误：{e}")
                self.outcome.failed_paths.append(path)
                continue
            if not self.is_current():
                break

            scanned = self._scanner.scan(path, content, cap - len(self.index))
            self.index.extend(scanned.matches)
            self.outcome.documents_searched += 1
            if scanned.count:
                self.outcome.documents_with_matches += 1

            while len(self.index) - exposed >= page_size:
                yield self.index.slice(exposed, exposed + page_size)
                exposed += page_size

            if scanned.truncated:
                self.index.truncated = True
                break
            # 每个文档之后让出事件循环
            await asyncio.sleep(0)

        if len(self.index) > exposed and self.is_current():
            yield self.index.slice(exposed, len(self.index))

        self.index.finalize()
        self.outcome.total_matches = len(self.index)
        self.outcome.truncated = self.index.truncated
        if self.index.truncated:
            # 截断后的文档未被扫描，无法断定子项不存在
            self.outcome.missing_terms = []
        else:
            self.outcome.missing_terms = self._scanner.missing_terms()
        self.outcome.stale = not self.is_current()
        if not self.outcome.stale:
            self._session.commit(self)


class FindReplaceSession:
    """查找替换面板会话（每个面板实例独占索引与撤销历史）"""

    def __init__(
        self,
        host: IDocumentHost,
        settings: Settings | None = None,
        panel: PanelSettings | None = None,
    ) -> None:
        self.host = host
        self.settings = settings or get_settings()
        self.panel = panel or PanelSettings()
        self.index = MatchIndex()
        self.history = UndoHistory(self.settings.history_capacity)
        self.query: Query | None = None
        self.scope = Scope.DOCUMENT
        self.last_outcome: SearchOutcome | None = None
        self.generation = 0
        self._previewer = ReplacementPreviewer()
        self._engine = BatchReplaceEngine(host, self._previewer)
        self._debouncer = Debouncer(self.settings.debounce_seconds)

    @classmethod
    async def open(cls, host: IDocumentHost, settings: Settings | None = None) -> "FindReplaceSession":
        """创建会话并加载持久化的面板状态"""
        try:
            stored = await host.load_config()
        except (RuntimeError, OSError) as e:
            logger.warning(f"⚠️ 读取面板配置失败，使用默认值：{e}")
            stored = {}
        return cls(host, settings, PanelSettings.merge(stored))

    # ---------- 查询 ----------

    def initial_find_text(self, selection_text: str = "") -> str:
        """打开面板时查找框的初始内容"""
        if self.panel.prefill_find and selection_text and "\n" not in selection_text:
            return selection_text
        return self.panel.find_text

    def build_query(self) -> Query:
        return Query(
            pattern=self.panel.find_text,
            use_regex=self.panel.use_regex,
            case_insensitive=self.panel.case_insensitive,
            whole_word=self.panel.whole_word,
        )

    def current_scope(self) -> Scope:
        if self.panel.all_files:
            return Scope.VAULT
        if self.panel.selection_only:
            return Scope.SELECTION
        return Scope.DOCUMENT

    async def _corpus(self, scope: Scope) -> list[str]:
        if scope == Scope.VAULT:
            return await self.host.list_documents()
        active = await self.host.get_active_document()
        return [active] if active else []

    async def start_scan(
        self,
        query: Query | None = None,
        scope: Scope | None = None,
        selection: Selection | None = None,
    ) -> ScanRun:
        """开始一次新的搜索，之前未完成的搜索全部作废

        Raises:
            EmptyQuery: 查询为空
            InvalidPattern: 模式无效或为退化模式
        """
        self.generation += 1
        generation = self.generation
        query = query or self.build_query()
        scope = scope or self.current_scope()
        self.index = MatchIndex(generation)

        if scope == Scope.SELECTION and selection is None:
            logger.warning("⚠️ 仅选区模式但没有选区，改为搜索当前文档")
            scope = Scope.DOCUMENT
        if scope != Scope.SELECTION:
            selection = None
        scanner = MatchScanner(query, selection)

        paths = await self._corpus(scope)
        run = ScanRun(self, generation, scanner, paths)
        if run.is_current():
            # 扫描过程中即可分页读取
            self.index = run.index
            self.query = query
            self.scope = scope
        return run

    def commit(self, run: ScanRun) -> None:
        """提交最新一次搜索的结果"""
        self.index = run.index
        self.last_outcome = run.outcome
        outcome = run.outcome
        logger.info(
            f"🔍 搜索完成：找到 {outcome.total_matches} 个匹配，"
            f"{outcome.documents_with_matches}/{outcome.documents_searched} 个文档")

        if outcome.total_matches == 0:
            self._notify("No match")
        if outcome.truncated:
            self._notify(f"Results truncated at {outcome.total_matches} matches")
        if outcome.missing_terms:
            self._notify(f"Not found: {', '.join(outcome.missing_terms)}")

    async def iter_search(
        self,
        query: Query | None = None,
        scope: Scope | None = None,
        selection: Selection | None = None,
    ) -> AsyncIterator[list[Match]]:
        """搜索并逐页产出匹配"""
        try:
            run = await self.start_scan(query, scope, selection)
        except FindReplaceError as e:
            self._notify(e.notice)
            raise
        async for page in run.pages():
            yield page

    async def search(
        self,
        query: Query | None = None,
        scope: Scope | None = None,
        selection: Selection | None = None,
    ) -> SearchOutcome:
        """执行完整搜索

        Returns:
            SearchOutcome: 搜索汇总；若期间有更新的搜索开始，stale 为 True
        """
        try:
            run = await self.start_scan(query, scope, selection)
        except FindReplaceError as e:
            self._notify(e.notice)
            raise
        async for _ in run.pages():
            pass
        return run.outcome

    def on_query_changed(self, pattern: str) -> CancelToken:
        """输入变化：更新查找文本并在静默期后搜索"""
        self.panel.find_text = pattern
        return self._debouncer.trigger(self._debounced_search)

    async def _debounced_search(self) -> None:
        try:
            await self.search()
        except FindReplaceError:
            pass  # 已通过 _notify 提示用户

    async def search_now(self, selection: Selection | None = None) -> SearchOutcome:
        """立即搜索，取消待执行的防抖任务"""
        self._debouncer.cancel()
        return await self.search(selection=selection)

    # ---------- 匹配操作 ----------

    def toggle(self, match_id: str, included: bool) -> bool:
        return self.index.toggle_include(match_id, included)

    def effective_template(self, template: str | None = None) -> str:
        raw = self.panel.replace_text if template is None else template
        return apply_control_sequences(raw, self.panel.process_line_break, self.panel.process_tab)

    def preview(self, match_id: str, template: str | None = None) -> PreviewContext | None:
        match = self.index.get(match_id)
        if match is None or self.query is None:
            return None
        return self._previewer.context(match, self.effective_template(template), self.query)

    def reveal(self, match_id: str) -> bool:
        """在宿主中定位并高亮匹配"""
        match = self.index.get(match_id)
        if match is None:
            return False
        try:
            self.host.navigate_to(match.path, match.line, match.start, match.end)
        except Exception as e:
            logger.warning(f"⚠️ 定位失败：{match.id}，错误：{e}")
        return True

    # ---------- 替换与撤销 ----------

    async def replace_approved(
        self,
        template: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchResult:
        """替换所有启用的匹配，并记录撤销条目"""
        if self.query is None:
            self._notify("No match")
            return BatchResult(changes=[], total_replacements=0)

        query = self.query
        effective = self.effective_template(template)
        approved = self.index.approved_matches()
        result = await self._engine.apply(approved, effective, query, cancel_event)

        if result.total_replacements > 0:
            self.history.push(UndoEntry(
                scope=self.scope,
                count=result.total_replacements,
                query=query,
                template=effective,
                changes=result.changes,
            ))
            self._notify(
                f"Made {result.total_replacements} replacement(s) in "
                f"{len(result.changes)} of {result.documents_touched} file(s)")
        else:
            self._notify("No match")

        if template is not None:
            self.panel.replace_text = template
        self.panel.find_text = query.pattern
        self.panel.use_regex = query.use_regex
        self.panel.all_files = self.scope == Scope.VAULT
        self.panel.selection_only = self.scope == Scope.SELECTION
        await self.save_panel()

        # 文档已变化，旧匹配的偏移不再可信
        self._invalidate()
        return result

    async def undo_last(self) -> UndoOutcome | None:
        """撤销最近一次批量替换

        Returns:
            UndoOutcome | None: 撤销结果，历史为空时返回 None
        """
        try:
            entry = self.history.pop_most_recent()
        except UndoEmpty as e:
            logger.debug("撤销请求被忽略：历史为空")
            self._notify(e.notice)
            return None

        outcome = UndoOutcome(entry=entry)
        for change in entry.changes:
            try:
                await self.host.write_content(change.path, change.before)
                outcome.reverted_paths.append(change.path)
                logger.debug(f"↩️ 已还原：{change.path}")
            except (FileNotFoundError, RuntimeError, OSError) as e:
                logger.error(f"❌ 还原文档失败：{change.path}，错误：{e}")
                outcome.failed_paths.append(change.path)

        logger.info(f"↩️ 已撤销 {entry.count} 处替换，涉及 {len(outcome.reverted_paths)} 个文档")
        self._notify(f"Reverted {entry.count} replacement(s) in {len(outcome.reverted_paths)} file(s)")
        self._invalidate()
        return outcome

    # ---------- 生命周期 ----------

    async def save_panel(self) -> None:
        try:
            await self.host.persist_config(self.panel.model_dump())
        except (RuntimeError, OSError) as e:
            logger.warning(f"⚠️ 保存面板配置失败：{e}")

    def teardown(self) -> None:
        """关闭面板：取消防抖任务、作废搜索并清空历史"""
        self._debouncer.cancel()
        self.history.clear()
        self._invalidate()

    def _invalidate(self) -> None:
        self.generation += 1
        self.index = MatchIndex(self.generation)
        self.query = None

    def _notify(self, message: str) -> None:
        # 提示通道的失败不能影响核心流程
        try:
            self.host.notify_user(message)
        except Exception as e:
            logger.warning(f"⚠️ 用户提示失败：{e}")
