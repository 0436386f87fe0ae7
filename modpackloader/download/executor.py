"""
下载执行器

把单个 URL 流式写入临时文件，每个数据块上报一次进度，成功后原子地重命名为最终文件。
"""

import asyncio
import os
import time
from typing import Awaitable, Callable, Optional

import aiofiles
import aiohttp
from loguru import logger

from modpackloader.download.progress import ProgressSample
from modpackloader.exceptions import (
    DownloadFileError,
    DownloadNetworkError,
    NoCandidateError,
)

TEMP_SUFFIX = ".onload"
CHUNK_SIZE = 81920
SPEED_WINDOW = 0.1

ProgressCallback = Callable[[ProgressSample], Awaitable[None]]


def temp_path_for(path: str) -> str:
    return f"{path}{TEMP_SUFFIX}"


class DownloadExecutor:
    """下载执行器"""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        chunk_size: int = CHUNK_SIZE,
        speed_window: float = SPEED_WINDOW,
    ):
        self._session = session
        self._owned_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout) if timeout else None
        self.user_agent = user_agent
        self.chunk_size = chunk_size
        self.speed_window = speed_window
        self.requests = 0

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def download(
        self,
        url: Optional[str],
        path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> int:
        """
        下载单个文件

        Args:
            url: 下载地址
            path: 最终文件路径
            progress: 进度回调，仅在响应声明了 Content-Length 时调用

        Returns:
            写入的字节数

        Raises:
            NoCandidateError: URL 为空
            DownloadNetworkError: HTTP 错误、网络错误或超时
            DownloadFileError: 本地文件写入失败
        """
        if not url:
            raise NoCandidateError(f"没有可用的下载地址: {os.path.basename(path)}")

        directory = os.path.dirname(path)
        temp_path = temp_path_for(path)
        logger.debug(f"[开始] 下载: {url} -> {path}")

        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.requests += 1
            written = await self._stream(url, temp_path, progress)
            os.replace(temp_path, path)
        except asyncio.CancelledError:
            self._discard(temp_path)
            logger.debug(f"[取消] 已取消下载: {url}")
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._discard(temp_path)
            raise DownloadNetworkError(
                f"下载失败: {str(e) or type(e).__name__}", url=url
            ) from e
        except OSError as e:
            self._discard(temp_path)
            raise DownloadFileError(f"写入文件失败: {e}", url=url) from e
        except DownloadNetworkError:
            self._discard(temp_path)
            raise

        return written

    async def _stream(
        self,
        url: str,
        temp_path: str,
        progress: Optional[ProgressCallback],
    ) -> int:
        kwargs = {"timeout": self.timeout} if self.timeout else {}
        async with self.session.get(url, **kwargs) as response:
            if response.status != 200:
                raise DownloadNetworkError(
                    f"HTTP {response.status}",
                    url=url,
                    context={"status": response.status},
                )

            total_size = response.content_length
            report = progress if progress is not None and total_size else None

            downloaded = 0
            speed = 0.0
            last_bytes = 0
            last_time = time.monotonic()

            async with aiofiles.open(temp_path, "wb") as f:
                async for chunk in response.content.iter_chunked(self.chunk_size):
                    await f.write(chunk)
                    downloaded += len(chunk)

                    if report is None:
                        continue

                    # 速度按时间窗口重新计算，最后一块总会结算一次
                    now = time.monotonic()
                    elapsed = now - last_time
                    finished = downloaded >= total_size
                    if elapsed > 0 and (elapsed >= self.speed_window or finished):
                        speed = 8 * (downloaded - last_bytes) / elapsed
                        last_bytes = downloaded
                        last_time = now

                    await report(ProgressSample(downloaded, total_size, speed))

            return downloaded

    @staticmethod
    def _discard(temp_path: str):
        """删除不完整的临时文件"""
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.warning(f"[警告] 无法删除临时文件 {temp_path}: {e}")

    async def close(self):
        """关闭 session"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
