"""
批量替换单元测试

测试内容：
1. 从后往前的替换顺序保证偏移正确
2. 选择性排除、内容未变化时不写入
3. 单个文档读写失败时的隔离
"""

import asyncio

import pytest

from notereplace.engine.batch import BatchReplaceEngine, splice_matches
from notereplace.engine.index import MatchIndex
from notereplace.engine.scanner import MatchScanner
from notereplace.model.search import Query


def _scan(documents: dict[str, str], query: Query) -> MatchIndex:
    scanner = MatchScanner(query)
    index = MatchIndex()
    for path in sorted(documents):
        index.extend(scanner.scan(path, documents[path], 10000).matches)
    return index


class TestSpliceMatches:
    """测试 splice_matches"""

    def test_back_to_front_matches_sequential_reference(self):
        """每个替换的长度都与匹配不同，结果应等于从最后一个匹配开始逐个替换"""
        content = "a1 a2 a3\nb a4"
        query = Query(r"a(\d)")
        index = _scan({"a.md": content}, query)
        matches = index.approved_matches()
        replacements = {m.id: f"<{m.text[1]}{m.text[1]}>" for m in matches}

        result, applied = splice_matches(content, matches, replacements)

        reference = content.split("\n")
        for m in reversed(matches):
            line = reference[m.line]
            reference[m.line] = line[:m.start] + replacements[m.id] + line[m.end:]
        assert result == "\n".join(reference) == "<11> <22> <33>\nb <44>"
        assert applied == 4

    def test_forward_order_would_differ(self):
        content = "a1 a2"
        matches = _scan({"a.md": content}, Query(r"a(\d)")).approved_matches()
        replacements = {m.id: "<long>" for m in matches}

        forward = content
        for m in matches:
            forward = forward[:m.start] + replacements[m.id] + forward[m.end:]

        result, _ = splice_matches(content, matches, replacements)
        assert result == "<long> <long>"
        assert forward != result

    def test_stale_match_skipped(self):
        matches = _scan({"a.md": "foo foo"}, Query("foo")).approved_matches()
        replacements = {m.id: "bar" for m in matches}
        result, applied = splice_matches("foo fox", matches, replacements)
        assert result == "bar fox"
        assert applied == 1

    def test_line_out_of_range_skipped(self):
        matches = _scan({"a.md": "x\nfoo"}, Query("foo")).approved_matches()
        result, applied = splice_matches("x", matches, {matches[0].id: "bar"})
        assert result == "x"
        assert applied == 0

    def test_trailing_newline_preserved(self):
        matches = _scan({"a.md": "foo\n"}, Query("foo")).approved_matches()
        result, _ = splice_matches("foo\n", matches, {matches[0].id: "bar"})
        assert result == "bar\n"


class TestBatchReplaceEngine:
    """测试 BatchReplaceEngine.apply"""

    @pytest.mark.asyncio
    async def test_replaces_across_documents(self, make_host):
        host = make_host({"a.md": "foo bar foo", "b.md": "nothing", "c.md": "x\nfoo"})
        query = Query("f(o+)")
        index = _scan(host.documents, query)

        result = await BatchReplaceEngine(host).apply(index.approved_matches(), "X$1", query)

        assert host.documents == {"a.md": "Xoo bar Xoo", "b.md": "nothing", "c.md": "x\nXoo"}
        assert result.total_replacements == 3
        assert [c.path for c in result.changes] == ["a.md", "c.md"]
        assert result.changes[0].before == "foo bar foo"
        assert result.changes[0].after == "Xoo bar Xoo"
        assert result.changes[0].replacements == 2
        assert result.documents_touched == 2

    @pytest.mark.asyncio
    async def test_selective_exclusion(self, make_host):
        host = make_host({"a.md": "foo foo foo"})
        query = Query("foo", use_regex=False)
        index = _scan(host.documents, query)
        index.toggle_include("a.md:0:4", False)

        result = await BatchReplaceEngine(host).apply(index.approved_matches(), "bar", query)

        assert host.documents["a.md"] == "bar foo bar"
        assert result.total_replacements == 2
        assert host.writes == ["a.md"]

    @pytest.mark.asyncio
    async def test_unchanged_document_not_written(self, make_host):
        host = make_host({"a.md": "foo"})
        query = Query("foo")
        index = _scan(host.documents, query)

        result = await BatchReplaceEngine(host).apply(index.approved_matches(), "$&", query)

        assert result.changes == []
        assert result.total_replacements == 0
        assert host.writes == []

    @pytest.mark.asyncio
    async def test_write_failure_isolated(self, make_host):
        host = make_host({"a.md": "foo", "b.md": "foo", "c.md": "foo"})
        host.fail_writes.add("b.md")
        query = Query("foo")
        index = _scan(host.documents, query)

        result = await BatchReplaceEngine(host).apply(index.approved_matches(), "bar", query)

        assert host.documents == {"a.md": "bar", "b.md": "foo", "c.md": "bar"}
        assert [c.path for c in result.changes] == ["a.md", "c.md"]
        assert result.failed_paths == ["b.md"]
        assert result.total_replacements == 2

    @pytest.mark.asyncio
    async def test_read_failure_isolated(self, make_host):
        host = make_host({"a.md": "foo", "b.md": "foo"})
        query = Query("foo")
        index = _scan(host.documents, query)
        host.fail_reads.add("a.md")

        result = await BatchReplaceEngine(host).apply(index.approved_matches(), "bar", query)

        assert host.documents == {"a.md": "foo", "b.md": "bar"}
        assert result.failed_paths == ["a.md"]

    @pytest.mark.asyncio
    async def test_reads_fresh_content(self, make_host):
        host = make_host({"a.md": "foo foo"})
        query = Query("foo")
        index = _scan(host.documents, query)
        host.documents["a.md"] = "foo foo\nappended"

        await BatchReplaceEngine(host).apply(index.approved_matches(), "bar", query)

        assert host.documents["a.md"] == "bar bar\nappended"

    @pytest.mark.asyncio
    async def test_replacement_with_line_break(self, make_host):
        host = make_host({"a.md": "a foo b\nfoo"})
        query = Query("foo")
        index = _scan(host.documents, query)

        result = await BatchReplaceEngine(host).apply(index.approved_matches(), "x\ny", query)

        assert host.documents["a.md"] == "a x\ny b\nx\ny"
        assert result.total_replacements == 2

    @pytest.mark.asyncio
    async def test_cancel_between_documents(self, make_host):
        host = make_host({"a.md": "foo", "b.md": "foo"})
        query = Query("foo")
        index = _scan(host.documents, query)
        cancel_event = asyncio.Event()
        cancel_event.set()

        result = await BatchReplaceEngine(host).apply(index.approved_matches(), "bar", query, cancel_event)

        assert result.cancelled
        assert result.changes == []
        assert host.writes == []
