"""
替换预览模块，计算单个匹配的替换结果而不修改文档
"""

import re
from functools import lru_cache
from typing import NamedTuple

from ..model.errors import FindReplaceError
from ..model.search import Match, Query
from .pattern import compile_regex


# $$ / $& / $<name> / $1..$99
_TEMPLATE_TOKEN = re.compile(r"\$(\$|&|<([^>]*)>|\d{1,2})")


class PreviewContext(NamedTuple):
    """预览上下文"""

    before: str
    """匹配前的行内文本"""
    matched: str
    """匹配文本"""
    replacement: str
    """替换文本"""
    after: str
    """匹配后的行内文本"""


def _group(hit: re.Match[str], index: int | str) -> str:
    value = hit.group(index)
    return value if value is not None else ""


def expand_template(template: str, hit: re.Match[str]) -> str:
    """按 `$` 风格的反向引用展开替换模板

    规则：
    - `$$` 输出 `$`，`$&` 输出整个匹配
    - `$n`/`$nn` 引用分组；两位数分组不存在时退回一位数，仍不存在则保留原文
    - `$<name>` 引用命名分组，分组不存在时保留原文
    - 未参与匹配的分组展开为空字符串

    Args:
        template: 替换模板
        hit: 正则匹配对象

    Returns:
        str: 展开后的文本
    """
    groups = hit.re.groups

    def _expand(token: re.Match[str]) -> str:
        body = token.group(1)
        if body == "$":
            return "$"
        if body == "&":
            return hit.group(0)
        if body.startswith("<"):
            name = token.group(2)
            if name not in hit.re.groupindex:
                return token.group(0)
            return _group(hit, name)
        if len(body) == 2 and 1 <= int(body) <= groups:
            return _group(hit, int(body))
        index = int(body[0])
        if 1 <= index <= groups:
            return _group(hit, index) + body[1:]
        return token.group(0)

    return _TEMPLATE_TOKEN.sub(_expand, template)


def apply_control_sequences(template: str, line_break: bool, tab: bool) -> str:
    """将模板中的 `\\n`/`\\t` 转换为换行符/制表符"""
    if line_break:
        template = template.replace("\\n", "\n")
    if tab:
        template = template.replace("\\t", "\t")
    return template


@lru_cache(maxsize=32)
def _cached_regex(query: Query) -> re.Pattern[str]:
    return compile_regex(query)


class ReplacementPreviewer:
    """替换预览器（无副作用、幂等）"""

    def preview(self, match: Match, template: str, query: Query) -> str:
        """计算匹配的替换文本

        Args:
            match: 匹配对象
            template: 替换模板
            query: 生成该匹配的查询

        Returns:
            str: 替换文本；正则模式下替换失败时返回原匹配文本
        """
        if not query.use_regex:
            return template

        try:
            pattern = _cached_regex(query)
        except FindReplaceError:
            return match.text

        hit = None
        if match.line_text:
            hit = pattern.match(match.line_text, match.start)
            if hit is not None and hit.end() != match.end:
                hit = None
        if hit is None:
            hit = pattern.fullmatch(match.text)
        if hit is None:
            return match.text

        try:
            return expand_template(template, hit)
        except (IndexError, ValueError, re.error):
            return match.text

    def context(self, match: Match, template: str, query: Query, radius: int = 40) -> PreviewContext:
        """生成带上下文的预览

        Args:
            match: 匹配对象
            template: 替换模板
            query: 查询对象
            radius: 匹配前后保留的字符数

        Returns:
            PreviewContext: 前文、匹配、替换、后文
        """
        line = match.line_text
        before = line[max(0, match.start - radius):match.start]
        after = line[match.end:match.end + radius]
        if match.start > radius:
            before = "…" + before
        if match.end + radius < len(line):
            after = after + "…"
        return PreviewContext(before, match.text, self.preview(match, template, query), after)
