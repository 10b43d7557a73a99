"""
测试公共夹具：内存文档宿主与测试配置
"""

from typing import Any, Callable

import pytest

from notereplace.model.setting import Settings
from notereplace.tool.host import IDocumentHost


class MemoryHost(IDocumentHost):
    """内存中的文档宿主，可模拟读写失败"""

    def __init__(self, documents: dict[str, str] | None = None, active: str | None = None):
        self.documents = dict(documents or {})
        self.active = active
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.writes: list[str] = []
        self.notices: list[str] = []
        self.navigations: list[tuple[str, int, int, int]] = []
        self.config: dict[str, Any] = {}

    async def list_documents(self) -> list[str]:
        return sorted(self.documents)

    async def get_active_document(self) -> str | None:
        return self.active

    async def read_content(self, path: str) -> str:
        if path in self.fail_reads:
            raise RuntimeError(f"读取文档失败：{path}")
        if path not in self.documents:
            raise FileNotFoundError(f"文档不存在：{path}")
        return self.documents[path]

    async def write_content(self, path: str, content: str) -> None:
        if path in self.fail_writes:
            raise RuntimeError(f"写入文档失败：{path}")
        self.documents[path] = content
        self.writes.append(path)

    async def load_config(self) -> dict[str, Any]:
        return dict(self.config)

    async def persist_config(self, config: dict[str, Any]) -> None:
        self.config = dict(config)

    def notify_user(self, message: str) -> None:
        self.notices.append(message)

    def navigate_to(self, path: str, line: int, start: int, end: int) -> None:
        self.navigations.append((path, line, start, end))


@pytest.fixture
def make_host() -> Callable[..., MemoryHost]:
    """创建内存宿主的工厂"""
    return MemoryHost


@pytest.fixture
def settings() -> Settings:
    """测试使用的配置"""
    return Settings(max_matches=10000, history_capacity=10, debounce_seconds=0.01, page_size=200)
