"""
目录 API 客户端

CurseForge 模组信息与文件列表查询。
"""

from typing import Optional

import aiohttp
from loguru import logger

from modpackloader.exceptions import CatalogError, CatalogNotFoundError
from modpackloader.models import ModFile, ModInfo, ModLoaderType

CURSEFORGE_BASE_URL = "https://api.curseforge.com/v1"


class CurseForgeClient:
    """CurseForge API 客户端"""

    def __init__(
        self,
        api_key: str,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: str = CURSEFORGE_BASE_URL,
        user_agent: Optional[str] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _headers(self) -> dict:
        headers = {"x-api-key": self.api_key, "Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """发送 API 请求，返回 data 字段"""
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"[目录] GET {url} {params or ''}")
        try:
            async with self.session.get(
                url, params=params, headers=self._headers()
            ) as response:
                if response.status == 404:
                    raise CatalogNotFoundError(
                        f"目录资源不存在: {endpoint}", response=response
                    )
                if response.status != 200:
                    raise CatalogError(
                        f"API 请求失败 (状态码: {response.status})",
                        response=response,
                    )
                payload = await response.json()
        except (aiohttp.ClientError, ValueError) as e:
            raise CatalogError(f"API 请求失败: {e}", context={"url": url}) from e

        if not isinstance(payload, dict) or "data" not in payload:
            raise CatalogError("API 返回了无法识别的数据", context={"url": url})
        return payload["data"]

    async def get_mod(self, project_id: int) -> ModInfo:
        """获取模组信息"""
        data = await self._request(f"/mods/{project_id}")
        return ModInfo.from_curseforge(data)

    async def get_mod_file(self, project_id: int, file_id: int) -> ModFile:
        """获取模组的单个文件信息"""
        data = await self._request(f"/mods/{project_id}/files/{file_id}")
        return ModFile.from_curseforge(data)

    async def get_mod_files(
        self,
        project_id: int,
        game_version: Optional[str] = None,
        loader: Optional[ModLoaderType] = None,
    ) -> list[ModFile]:
        """
        获取模组的文件列表

        Args:
            project_id: 模组 ID
            game_version: 游戏版本过滤
            loader: 加载器过滤

        Returns:
            文件列表
        """
        params = {}
        if game_version:
            params["gameVersion"] = game_version
        if loader is not None:
            params["modLoaderType"] = int(loader)
        data = await self._request(f"/mods/{project_id}/files", params or None)
        return [ModFile.from_curseforge(item) for item in data]

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
