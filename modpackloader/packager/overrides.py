"""
覆盖文件解压

把整合包中 overrides 目录下的文件原样解压到输出目录。
"""

import os
import posixpath
import shutil
import zipfile
from typing import List, Sequence

from loguru import logger

from modpackloader.exceptions import LoaderError


class OverrideError(LoaderError):
    """覆盖文件解压错误"""

    def _get_default_code(self) -> str:
        return "E400"


class OverrideExtractor:
    """覆盖文件解压器"""

    async def extract(
        self,
        archive: zipfile.ZipFile,
        prefixes: Sequence[str],
        output_dir: str,
    ) -> List[str]:
        """
        解压覆盖文件

        Args:
            archive: 整合包
            prefixes: 覆盖目录名，按顺序应用，后者覆盖前者
            output_dir: 输出目录

        Returns:
            解压出的文件路径列表
        """
        root = os.path.abspath(output_dir)
        extracted = []

        for prefix in prefixes:
            prefix = prefix.strip("/") + "/"
            for info in archive.infolist():
                if not info.filename.startswith(prefix):
                    continue

                relative = info.filename[len(prefix):]
                if not relative:
                    continue

                target = os.path.abspath(
                    os.path.join(root, *posixpath.normpath(relative).split("/"))
                )
                if os.path.commonpath([root, target]) != root:
                    logger.warning(f"[警告] 忽略越界的覆盖文件: {info.filename}")
                    continue

                if info.is_dir():
                    os.makedirs(target, exist_ok=True)
                    continue

                try:
                    os.makedirs(os.path.dirname(target), exist_ok=True)
                    with archive.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                except (OSError, zipfile.BadZipFile) as e:
                    raise OverrideError(
                        f"解压覆盖文件失败: {info.filename}",
                        context={"entry": info.filename, "error": str(e)},
                    ) from e

                extracted.append(target)
                logger.debug(f"[覆盖] Extracted override: {target}")

        return extracted
