class FindReplaceError(Exception):
    """查找替换流程中可向用户展示的异常基类"""

    def __init__(self, message: str, notice: str = ""):
        super().__init__(message)
        self.notice = notice or message
        """展示给用户的提示文本"""


class EmptyQuery(FindReplaceError):
    """EmptyQuery 异常，表示查询为空或只包含空白字符"""

    def __init__(self, message: str = "查询内容为空"):
        super().__init__(message, "Nothing to search for!")


class InvalidPattern(FindReplaceError):
    """InvalidPattern 异常，表示模式无法编译或会匹配空字符串"""

    def __init__(self, message: str, degenerate: bool = False):
        notice = (
            "Pattern matches empty text. Refine your pattern."
            if degenerate
            else "Invalid regular expression. Check your pattern."
        )
        super().__init__(message, notice)
        self.degenerate = degenerate
        """是否为退化模式（可匹配空字符串）"""


class UndoEmpty(FindReplaceError):
    """UndoEmpty 异常，表示撤销历史为空"""

    def __init__(self, message: str = "撤销历史为空"):
        super().__init__(message, "Nothing to revert.")
