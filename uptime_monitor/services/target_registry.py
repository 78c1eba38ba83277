"""目标列表"""

from typing import Tuple

from ..utils.exceptions import TargetListError, ErrorCode
from ..utils.log_manager import get_logger


class TargetRegistry:
    """有序且加载后只读的目标地址列表

    第 0 个地址为主目标，其余为仅用于交叉验证的备用目标。
    """

    def __init__(self, urls):
        urls = tuple(urls)
        if not urls:
            raise TargetListError("目标列表为空", error_code=ErrorCode.TARGET_FILE_EMPTY)
        self._urls: Tuple[str, ...] = urls

    @classmethod
    def load(cls, path: str) -> 'TargetRegistry':
        """
        从文本文件加载目标列表，每行一个地址，跳过空行

        Args:
            path: 文件路径

        Returns:
            TargetRegistry: 目标列表

        Raises:
            TargetListError: 文件不可读或没有任何地址
        """
        logger = get_logger('target_registry')

        try:
            with open(path, 'r', encoding='utf-8') as file:
                urls = [line.strip() for line in file if line.strip()]
        except OSError as e:
            logger.error(f"无法读取目标列表文件 {path}: {e}")
            raise TargetListError(f"无法读取目标列表文件: {path}", path=path, cause=e)

        if not urls:
            logger.error(f"目标列表文件为空: {path}")
            raise TargetListError(f"目标列表文件为空: {path}",
                                  error_code=ErrorCode.TARGET_FILE_EMPTY, path=path)

        logger.info(f"从 {path} 加载了 {len(urls)} 个目标，主目标: {urls[0]}")
        return cls(urls)

    @property
    def primary(self) -> str:
        return self._urls[0]

    @property
    def fallbacks(self) -> Tuple[str, ...]:
        return self._urls[1:]

    @property
    def urls(self) -> Tuple[str, ...]:
        return self._urls

    def __len__(self) -> int:
        return len(self._urls)
