from setuptools import setup, find_packages

# 步骤1：只打包 notereplace 及其子包（得到 ["notereplace", "notereplace.engine", ...]）
packages = find_packages(include=["notereplace", "notereplace.*"])

setup(
    name="notereplace",
    version="0.1.0",
    description="Regex/literal find and replace with batched undo for note collections",
    packages=packages,
    python_requires=">=3.10",
    # 运行时依赖
    install_requires=[
        "loguru>=0.7",
        "aiofiles>=23.1",
        "asyncer>=0.0.5",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
    ],
    # 测试依赖：pip install -e .[test]
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
)
