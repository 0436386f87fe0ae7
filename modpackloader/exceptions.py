"""
ModpackLoader 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional

import aiohttp


class LoaderError(Exception):
    """ModpackLoader 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(LoaderError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ManifestError(LoaderError):
    """清单缺失或无法解析，整个任务终止"""

    def _get_default_code(self) -> str:
        return "E110"


class CatalogError(LoaderError):
    """目录 API 返回错误，当前资源被放弃"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response is not None:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    def _get_default_code(self) -> str:
        return "E200"


class CatalogNotFoundError(CatalogError):
    """目录资源不存在"""

    def _get_default_code(self) -> str:
        return "E204"


class UnknownCategoryError(CatalogError):
    """未知的目录分类 ID"""

    def _get_default_code(self) -> str:
        return "E210"


class DownloadError(LoaderError):
    """下载相关错误，携带尝试的 URL"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, context)
        self.url = url
        if url:
            self.context.setdefault("url", url)

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadFileError(DownloadError):
    """下载文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class NoCandidateError(DownloadError):
    """没有可用的下载地址"""

    def _get_default_code(self) -> str:
        return "E310"


__all__ = [
    "LoaderError",
    "ConfigError",
    "ManifestError",
    "CatalogError",
    "CatalogNotFoundError",
    "UnknownCategoryError",
    "DownloadError",
    "DownloadNetworkError",
    "DownloadFileError",
    "NoCandidateError",
]
