"""
ModpackLoader

从 CurseForge / Modrinth 整合包文件下载全部资源到本地目录。
"""

__version__ = "0.1.0"
