"""
压缩算法的公共基础设施
定义压缩策略的抽象基类和惰性结果迭代器的拉取协议
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Iterable, Iterator, List, Optional

import pandas as pd

from .utils.dataloader import DataPoint, data_points_to_dataframe

logger = logging.getLogger(__name__)


class ObjectDisposedError(RuntimeError):
    """在已释放的迭代器上继续拉取数据"""


# ============================================================================
# 结果迭代器 (Result Iterators)
# ============================================================================

class DataPointIterator(Iterator[DataPoint]):
    """
    压缩结果的惰性迭代器基类

    每次 next() 推进一次内部状态机并返回一个保留点。
    耗尽后重复调用 next() 始终抛出 StopIteration；
    close() 之后再调用 next() 抛出 ObjectDisposedError。
    """

    STATE_INITIAL = 0
    STATE_FINISHED = -1
    STATE_DISPOSED = -2

    def __init__(self):
        self._state = self.STATE_INITIAL
        self._current: Optional[DataPoint] = None
        self._current_index = -1

    @property
    def current(self) -> Optional[DataPoint]:
        """最近一次输出的数据点"""
        return self._current

    @property
    def current_index(self) -> int:
        """最近一次输出的数据点在输入中的位置（从0开始，尚未输出时为-1）"""
        return self._current_index

    @property
    def closed(self) -> bool:
        return self._state == self.STATE_DISPOSED

    def __iter__(self) -> 'DataPointIterator':
        return self

    def __next__(self) -> DataPoint:
        if self._state == self.STATE_DISPOSED:
            raise ObjectDisposedError(f"{type(self).__name__} 已释放，不能继续读取")
        if self._state == self.STATE_FINISHED:
            raise StopIteration

        if self._move_next():
            return self._current

        self._state = self.STATE_FINISHED
        raise StopIteration

    @abstractmethod
    def _move_next(self) -> bool:
        """推进状态机，产生新输出时设置_current并返回True"""

    def close(self) -> None:
        """释放迭代器持有的输入引用，之后的读取会失败"""
        self._state = self.STATE_DISPOSED
        self._release()

    def _release(self) -> None:
        pass

    def __enter__(self) -> 'DataPointIterator':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def to_list(self) -> List[DataPoint]:
        """读取剩余的全部输出"""
        return list(self)

    def to_dataframe(self) -> pd.DataFrame:
        return data_points_to_dataframe(self)


class EmptyIterator(DataPointIterator):
    """空输入的结果：不产生任何数据点"""

    def _move_next(self) -> bool:
        return False


# ============================================================================
# 压缩策略基类 (Compression Base)
# ============================================================================

class Compression(ABC):
    """压缩策略的抽象基类"""

    def process(self, data: Iterable[DataPoint]) -> DataPointIterator:
        """
        对数据点序列进行压缩，返回惰性结果迭代器

        参数:
            data: DataPoint序列；支持下标访问的有限序列（list、tuple等）
                  按下标遍历，其它可迭代对象按单次前向游标遍历

        返回:
            DataPointIterator，按顺序产生保留下来的数据点
        """
        if data is None:
            raise TypeError("data 不能为 None")

        if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
            if len(data) == 0:
                return EmptyIterator()
            logger.debug("%s: 使用下标遍历策略，共 %d 个点", type(self).__name__, len(data))
            return self._process_indexed(data)

        iterator = iter(data)
        first = next(iterator, _MISSING)
        if first is _MISSING:
            return EmptyIterator()
        logger.debug("%s: 使用顺序遍历策略", type(self).__name__)
        return self._process_sequential(first, iterator)

    def process_sequential(self, data: Iterable[DataPoint]) -> DataPointIterator:
        """强制使用单次前向游标遍历，忽略输入是否支持下标访问"""
        if data is None:
            raise TypeError("data 不能为 None")
        return self.process(iter(data))

    @abstractmethod
    def _process_indexed(self, source: Sequence) -> DataPointIterator:
        """非空的可下标访问序列"""

    @abstractmethod
    def _process_sequential(self, first: DataPoint, rest: Iterator[DataPoint]) -> DataPointIterator:
        """first为已经读出的第一个点，rest为剩余的前向游标"""


_MISSING = object()
