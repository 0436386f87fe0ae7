"""
ModpackLoader 打包层

包含覆盖文件解压。
"""

from modpackloader.packager.overrides import OverrideExtractor, OverrideError

__all__ = [
    "OverrideExtractor",
    "OverrideError",
]
