"""
宿主接口实现，为查找替换核心提供文档读写、配置持久化和用户提示
"""

import os
import json
from abc import ABC, abstractmethod
from typing import Any, Callable

import aiofiles
from asyncer import asyncify
from loguru import logger


class IDocumentHost(ABC):
    """宿主环境接口"""

    @abstractmethod
    async def list_documents(self) -> list[str]:
        """列出全部可搜索文档。

        Returns:
            list[str]: 文档路径列表，按路径排序。
        """

    @abstractmethod
    async def get_active_document(self) -> str | None:
        """获取当前活动文档。

        Returns:
            str | None: 活动文档路径，没有时返回None。
        """

    @abstractmethod
    async def read_content(self, path: str) -> str:
        """读取文档完整内容。

        Args:
            path: 文档路径。

        Raises:
            FileNotFoundError: 文档不存在。
            RuntimeError: 读取失败。
        """

    @abstractmethod
    async def write_content(self, path: str, content: str) -> None:
        """覆盖写入文档内容。

        Args:
            path: 文档路径。
            content: 新内容。

        Raises:
            RuntimeError: 写入失败或路径超出范围。
        """

    @abstractmethod
    async def load_config(self) -> dict[str, Any]:
        """读取持久化的扁平配置，不存在时返回空字典"""

    @abstractmethod
    async def persist_config(self, config: dict[str, Any]) -> None:
        """保存扁平配置"""

    @abstractmethod
    def notify_user(self, message: str) -> None:
        """向用户展示提示（非阻塞）"""

    def navigate_to(self, path: str, line: int, start: int, end: int) -> None:
        """移动视图并短暂高亮某个位置（可选，默认不做任何事）"""


class LocalVault(IDocumentHost):
    """基于本地目录的文档库

    核心功能：
    1. 将目录下指定后缀的文件视为文档，路径使用相对于根目录的 POSIX 形式
    2. 使用aiofiles进行异步读写
    3. 所有路径都经过鉴权，不允许超出根目录
    4. 配置保存在根目录下的 JSON 文件中
    """

    CONFIG_NAME = ".notereplace.json"

    def __init__(
        self,
        root_dir: str,
        suffixes: list[str] | None = None,
        notifier: Callable[[str], None] | None = None,
    ) -> None:
        """初始化文档库

        Args:
            root_dir: 文档库根目录
            suffixes: 视为文档的文件后缀，默认 [".md"]
            notifier: 用户提示回调，默认写入日志
        """
        if not os.path.isdir(root_dir):
            raise RuntimeError(f"文档库目录不存在：{root_dir}")
        self._root = os.path.normpath(os.path.abspath(root_dir))
        self._suffixes = tuple(suffixes or [".md"])
        self._notifier = notifier
        self._active: str | None = None
        self.notices: list[str] = []

    def get_root(self) -> str:
        return self._root

    def set_active_document(self, path: str | None) -> None:
        if path is not None:
            self.check_path(path)
        self._active = path

    def check_path(self, path: str) -> tuple[str, str]:
        """解析文档路径并进行鉴权：返回（绝对路径，相对于根目录的路径）

        Raises:
            ValueError: 路径为空
            RuntimeError: 路径超出根目录
        """
        if not path:
            raise ValueError("文档路径不能为空")

        normalized_path = os.path.normpath(path)
        if os.path.isabs(normalized_path):
            file_abs = normalized_path
        else:
            file_abs = os.path.normpath(os.path.join(self._root, normalized_path))

        try:
            common_path = os.path.commonpath([self._root, file_abs])
        except ValueError:
            raise RuntimeError(f"文档路径无效或超出根目录：{file_abs}")
        if common_path != self._root:
            raise RuntimeError(f"文档路径超出根目录：{file_abs}")

        file_rel = os.path.relpath(file_abs, self._root).replace(os.sep, "/")
        return file_abs, file_rel

    def _walk(self) -> list[str]:
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self._root):
            # 跳过隐藏目录
            dirnames[:] = [name for name in dirnames if not name.startswith(".")]
            for filename in filenames:
                if filename.endswith(self._suffixes) and not filename.startswith("."):
                    rel = os.path.relpath(os.path.join(dirpath, filename), self._root)
                    found.append(rel.replace(os.sep, "/"))
        return sorted(found)

    async def list_documents(self) -> list[str]:
        return await asyncify(self._walk)()

    async def get_active_document(self) -> str | None:
        return self._active

    async def read_content(self, path: str) -> str:
        """读取文档内容（异步IO）"""
        file_abs, _ = self.check_path(path)
        if not os.path.exists(file_abs):
            raise FileNotFoundError(f"文档不存在：{file_abs}")

        try:
            async with aiofiles.open(file_abs, 'r', encoding='utf-8', newline='') as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise RuntimeError(f"读取文档失败：{file_abs}，错误：{str(e)}") from e

    async def write_content(self, path: str, content: str) -> None:
        """写入文档内容（异步IO，覆盖模式）"""
        file_abs, _ = self.check_path(path)
        try:
            async with aiofiles.open(file_abs, 'w', encoding='utf-8', newline='') as f:
                await f.write(content)
        except OSError as e:
            raise RuntimeError(f"写入文档失败：{file_abs}，错误：{str(e)}") from e
        logger.debug(f"📄 文档保存成功：{file_abs}，大小：{len(content)} 字符")

    async def load_config(self) -> dict[str, Any]:
        config_path = os.path.join(self._root, self.CONFIG_NAME)
        if not os.path.exists(config_path):
            return {}
        try:
            async with aiofiles.open(config_path, 'r', encoding='utf-8') as f:
                data = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"⚠️ 配置文件损坏，使用默认配置：{config_path}，错误：{e}")
            return {}
        return data if isinstance(data, dict) else {}

    async def persist_config(self, config: dict[str, Any]) -> None:
        config_path = os.path.join(self._root, self.CONFIG_NAME)
        try:
            async with aiofiles.open(config_path, 'w', encoding='utf-8') as f:
                await f.write(json.dumps(config, indent=2, ensure_ascii=False))
        except OSError as e:
            raise RuntimeError(f"保存配置失败：{config_path}，错误：{str(e)}") from e

    def notify_user(self, message: str) -> None:
        self.notices.append(message)
        if self._notifier is not None:
            self._notifier(message)
        else:
            logger.info(f"💬 {message}")
