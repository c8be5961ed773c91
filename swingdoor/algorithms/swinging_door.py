"""
旋转门（Swinging Door）趋势压缩算法

以最后一个保留点为门轴，为后续每个点计算允许偏差±deviation对应的上下斜率，
上门只会往下关、下门只会往上关；一旦新点的斜率落在门外，就保留门内最后一个点（快照），
并以越界点为新的门轴重新开门。

两种遍历方式共用同一套判定逻辑：
    - 顺序遍历：只能前向读取一次的游标（生成器、文件流等）
    - 下标遍历：支持len()和下标的有限序列，只保存整数下标
两者对相同输入产生完全相同的输出。
"""

import logging
import math
from collections.abc import Sequence
from typing import Dict, Iterator, Optional, Tuple

import pandas as pd

from ..compression import Compression, DataPointIterator
from ..utils.dataloader import DataPoint, dataframe_to_data_points

logger = logging.getLogger(__name__)


class SwingingDoorCompression(Compression):
    """
    旋转门压缩

    参数:
        compression_deviation: 作用在y上的绝对偏差，用于计算门的上下斜率
        max_delta_x: x方向最大间隔，达到后无条件保留当前点；None表示不限制
        min_delta_x: 保留一个点之后，与快照x距离不超过该值的点直接跳过；None表示不启用
    """

    def __init__(self, compression_deviation: float,
                 max_delta_x: Optional[float] = None,
                 min_delta_x: Optional[float] = None):
        compression_deviation = float(compression_deviation)
        if math.isnan(compression_deviation) or compression_deviation < 0:
            raise ValueError(f"compression_deviation 必须 >= 0，当前为 {compression_deviation}")
        if max_delta_x is not None and not float(max_delta_x) >= 0:
            raise ValueError(f"max_delta_x 必须 >= 0，当前为 {max_delta_x}")
        if min_delta_x is not None and not float(min_delta_x) >= 0:
            raise ValueError(f"min_delta_x 必须 >= 0，当前为 {min_delta_x}")

        self._compression_deviation = compression_deviation
        self._max_delta_x = math.inf if max_delta_x is None else float(max_delta_x)
        self._min_delta_x = None if min_delta_x is None else float(min_delta_x)

        if self._min_delta_x is not None and self._min_delta_x > self._max_delta_x:
            logger.warning("min_delta_x (%s) 大于 max_delta_x (%s)", self._min_delta_x, self._max_delta_x)

        logger.debug("SwingingDoorCompression(deviation=%s, max_delta_x=%s, min_delta_x=%s)",
                     compression_deviation, max_delta_x, min_delta_x)

    @classmethod
    def from_timedelta(cls, compression_deviation: float, max_time,
                       min_time=None) -> 'SwingingDoorCompression':
        """
        用时间长度指定间隔，换算为秒（与DataPoint.from_timestamp的x单位一致）

        max_time、min_time可以是timedelta、pandas.Timedelta或"5min"这样的字符串，
        max_time为None表示不限制。
        """
        max_delta_x = None if max_time is None else pd.Timedelta(max_time).total_seconds()
        min_delta_x = None if min_time is None else pd.Timedelta(min_time).total_seconds()
        return cls(compression_deviation, max_delta_x, min_delta_x)

    @property
    def compression_deviation(self) -> float:
        return self._compression_deviation

    @property
    def max_delta_x(self) -> Optional[float]:
        """x方向最大间隔，未设置时为None"""
        return None if self._max_delta_x == math.inf else self._max_delta_x

    @property
    def min_delta_x(self) -> Optional[float]:
        return self._min_delta_x

    def __repr__(self):
        return (f"SwingingDoorCompression(compression_deviation={self._compression_deviation}, "
                f"max_delta_x={self.max_delta_x}, min_delta_x={self._min_delta_x})")

    def _process_indexed(self, source: Sequence) -> DataPointIterator:
        return _IndexedIterator(self, source)

    def _process_sequential(self, first: DataPoint, rest: Iterator[DataPoint]) -> DataPointIterator:
        return _SequentialIterator(self, first, rest)


# ============================================================================
# 门的判定逻辑 (Door Logic)
# ============================================================================

class _SwingingDoorIterator(DataPointIterator):
    """两种遍历方式共用的开门、关门和越界判定"""

    STATE_SCANNING = 1
    STATE_REANCHOR = 2

    def __init__(self, compression: SwingingDoorCompression):
        super().__init__()
        self._compression = compression
        self._slope_max = math.inf
        self._slope_min = -math.inf

    def _is_point_to_archive(self, last_archived: DataPoint, incoming: DataPoint) -> Tuple[bool, bool]:
        """
        判断incoming是否需要保留

        返回:
            (archive, max_delta)：是否保留；是否因超过max_delta_x而强制保留
        """
        if (incoming.x - last_archived.x) >= self._compression._max_delta_x:
            return True, True

        # 比较斜率只需一次除法，与比较上下门限的y值结果相同
        slope = last_archived.gradient(incoming)
        return (slope < self._slope_min or self._slope_max < slope), False

    def _close_the_door(self, last_archived: DataPoint, incoming: DataPoint) -> None:
        deviation = self._compression._compression_deviation
        upper_slope = last_archived.gradient(incoming, deviation)
        lower_slope = last_archived.gradient(incoming, -deviation)

        if upper_slope < self._slope_max:
            self._slope_max = upper_slope
        if lower_slope > self._slope_min:
            self._slope_min = lower_slope

    def _open_new_door(self) -> None:
        self._slope_max = math.inf
        self._slope_min = -math.inf

    def _is_too_close(self, snapshot_x: float, x: float) -> bool:
        """重新开门前，与快照x距离不超过min_delta_x的点被跳过"""
        return not (x - snapshot_x > self._compression._min_delta_x)

    @property
    def door(self) -> Tuple[float, float]:
        """当前门的斜率范围 (slope_min, slope_max)"""
        return self._slope_min, self._slope_max


# ============================================================================
# 顺序遍历 (Sequential Cursor)
# ============================================================================

class _SequentialIterator(_SwingingDoorIterator):
    """在只能前向读取一次的游标上运行，只缓存快照、门轴和当前点"""

    def __init__(self, compression: SwingingDoorCompression, first: DataPoint, source: Iterator[DataPoint]):
        super().__init__(compression)
        self._source = source
        self._first = first
        self._snapshot = first
        self._last_archived = first
        self._incoming = first
        self._snapshot_index = 0
        self._incoming_index = 0

    def _move_next(self) -> bool:
        state = self._state

        if state == self.STATE_INITIAL:
            self._snapshot = self._last_archived = self._incoming = self._first
            self._snapshot_index = self._incoming_index = 0
            self._emit(self._first, 0)
            self._open_new_door()
            self._state = self.STATE_SCANNING
            return True

        if state == self.STATE_SCANNING:
            for incoming in self._source:
                self._incoming = incoming
                self._incoming_index += 1

                archive, max_delta = self._is_point_to_archive(self._last_archived, incoming)
                if not archive:
                    self._close_the_door(self._last_archived, incoming)
                    self._snapshot = incoming
                    self._snapshot_index = self._incoming_index
                    continue

                if not max_delta:
                    self._emit(self._snapshot, self._snapshot_index)
                    self._state = self.STATE_REANCHOR
                    return True

                return self._reanchor()

            # 输入耗尽：最后一个点与门轴不同时补充输出
            self._state = self.STATE_FINISHED
            if self._incoming != self._last_archived:
                self._emit(self._incoming, self._incoming_index)
                return True
            return False

        if state == self.STATE_REANCHOR:
            return self._reanchor()

        return False

    def _reanchor(self) -> bool:
        if self._compression._min_delta_x is not None:
            snapshot_x = self._snapshot.x
            while self._is_too_close(snapshot_x, self._incoming.x):
                incoming = next(self._source, None)
                if incoming is None:
                    break
                self._incoming = incoming
                self._incoming_index += 1

        self._emit(self._incoming, self._incoming_index)
        self._state = self.STATE_SCANNING
        self._last_archived = self._snapshot = self._incoming
        self._snapshot_index = self._incoming_index
        self._open_new_door()
        return True

    def _emit(self, point: DataPoint, index: int) -> None:
        self._current = point
        self._current_index = index

    def _release(self) -> None:
        # 生成器等游标需要显式关闭，才能执行其中的finally
        close = getattr(self._source, 'close', None)
        if close is not None:
            close()
        self._source = iter(())


# ============================================================================
# 下标遍历 (Indexed Cursor)
# ============================================================================

class _IndexedIterator(_SwingingDoorIterator):
    """在可下标访问的有限序列上运行，只保存三个整数下标，数据点按需从源序列读取"""

    def __init__(self, compression: SwingingDoorCompression, source: Sequence):
        super().__init__(compression)
        self._source = source
        self._snapshot_index = 0
        self._last_archived_index = 0
        self._incoming_index = 0

    def _move_next(self) -> bool:
        state = self._state
        source = self._source

        if state == self.STATE_INITIAL:
            self._snapshot_index = 0
            self._last_archived_index = 0
            self._emit(0)

            if len(source) < 2:
                self._state = self.STATE_FINISHED
                return True

            self._open_new_door()
            self._incoming_index = 1
            self._state = self.STATE_SCANNING
            return True

        if state == self.STATE_SCANNING:
            count = len(source)
            snapshot_index = self._snapshot_index
            incoming_index = self._incoming_index

            while incoming_index < count:
                archive, max_delta = self._is_index_to_archive(incoming_index)

                if not archive:
                    self._close_the_door_at(incoming_index)
                    snapshot_index = incoming_index
                    incoming_index += 1
                    continue

                self._snapshot_index = snapshot_index
                self._incoming_index = incoming_index

                if not max_delta:
                    self._emit(snapshot_index)
                    self._state = self.STATE_REANCHOR
                    return True

                return self._reanchor()

            self._snapshot_index = snapshot_index
            self._incoming_index = incoming_index
            self._state = self.STATE_FINISHED

            last_index = count - 1
            if source[last_index] != source[self._last_archived_index]:
                self._emit(last_index)
                return True
            return False

        if state == self.STATE_REANCHOR:
            return self._reanchor()

        return False

    def _reanchor(self) -> bool:
        source = self._source
        incoming_index = self._incoming_index

        if self._compression._min_delta_x is not None:
            last_index = len(source) - 1
            snapshot_x = source[self._snapshot_index].x

            # 到达末尾时停在最后一个点，与顺序遍历的行为一致
            while incoming_index < last_index and self._is_too_close(snapshot_x, source[incoming_index].x):
                incoming_index += 1

        self._emit(incoming_index)
        self._state = self.STATE_SCANNING
        self._last_archived_index = self._snapshot_index = incoming_index
        self._incoming_index = incoming_index + 1
        self._open_new_door()
        return True

    def _check_bounds(self, incoming_index: int) -> None:
        count = len(self._source)
        if not (0 <= incoming_index < count and 0 <= self._last_archived_index < count):
            raise IndexError(
                f"下标越界: incoming_index={incoming_index}, "
                f"last_archived_index={self._last_archived_index}, count={count}")

    def _is_index_to_archive(self, incoming_index: int) -> Tuple[bool, bool]:
        self._check_bounds(incoming_index)
        source = self._source
        return self._is_point_to_archive(source[self._last_archived_index], source[incoming_index])

    def _close_the_door_at(self, incoming_index: int) -> None:
        self._check_bounds(incoming_index)
        source = self._source
        self._close_the_door(source[self._last_archived_index], source[incoming_index])

    def _emit(self, index: int) -> None:
        self._current = self._source[index]
        self._current_index = index

    def _release(self) -> None:
        self._source = ()


# ============================================================================
# 算法插件接口 (Plugin Interface)
# ============================================================================

def compress(points: pd.DataFrame, params: Dict) -> pd.DataFrame:
    """
    旋转门压缩算法（DataFrame接口）

    参数:
        points: 输入序列数据框，必须包含X、Y列，X非递减
        params: 参数配置字典，包含：
            - deviation: y方向允许偏差
            - max_delta_x: 可选，x方向最大间隔
            - min_delta_x: 可选，x方向最小间隔
            - strategy: 'indexed'（默认）或 'sequential'

    返回:
        压缩后的数据框，orig_idx列指向输入中的行号
    """
    merged = {**DEFAULT_PARAMS, **params}
    compression = SwingingDoorCompression(
        merged['deviation'],
        max_delta_x=merged.get('max_delta_x'),
        min_delta_x=merged.get('min_delta_x'),
    )

    strategy = merged.get('strategy', 'indexed')
    if strategy not in ('indexed', 'sequential'):
        raise ValueError(f"未知遍历方式: {strategy}")

    df = points.reset_index(drop=True)
    data_points = dataframe_to_data_points(df)
    if strategy == 'sequential':
        iterator = compression.process_sequential(data_points)
    else:
        iterator = compression.process(data_points)

    indices = []
    with iterator:
        for _ in iterator:
            indices.append(iterator.current_index)

    return df.iloc[indices].reset_index(drop=False).rename(columns={"index": "orig_idx"})


# 算法元数据定义 - 用于界面显示和参数配置
DISPLAY_NAME = "旋转门算法"
DEFAULT_PARAMS = {'deviation': 1.0, 'max_delta_x': None, 'min_delta_x': None, 'strategy': 'indexed'}
PARAM_HELP = {
    'deviation': 'y方向允许偏差（与测量值同单位）',
    'max_delta_x': 'x方向最大间隔，超过后强制保留（为空表示不限制）',
    'min_delta_x': 'x方向最小间隔，越界后该范围内的点被跳过（为空表示不启用）',
    'strategy': "遍历方式：'indexed' 或 'sequential'",
}
