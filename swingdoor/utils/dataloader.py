import math
import os
import pandas as pd  # 导入pandas数据处理库，用于读取和整理时间序列
from typing import Tuple, Dict, List, Any, Iterable
from dataclasses import dataclass


@dataclass(frozen=True)  # 不可变的数据点，读入后不再修改
class DataPoint:
    """时间序列中的一个采样点 (x, y)，x 通常是时间（秒），y 是测量值"""
    x: float  # 横坐标（时间或序号）
    y: float  # 纵坐标（测量值）

    def gradient(self, other: 'DataPoint', y_offset: float = 0.0) -> float:
        """
        计算从当前点到other点的斜率，other的y值先加上y_offset。

        x重复时按IEEE 754除法处理：返回±inf，0/0返回nan，不抛异常。
        """
        dy = (other.y + y_offset) - self.y
        dx = other.x - self.x

        if dx == 0:
            if dy == 0 or math.isnan(dy):
                return math.nan
            return math.copysign(math.inf, dy)

        return dy / dx

    @classmethod
    def from_timestamp(cls, timestamp, y: float) -> 'DataPoint':
        """由时间戳构造数据点，x为POSIX秒（无时区的时间按UTC处理）"""
        return cls(pd.Timestamp(timestamp).timestamp(), float(y))

    @property
    def timestamp(self) -> pd.Timestamp:
        """把x解释为POSIX秒，返回对应的pandas时间戳"""
        return pd.Timestamp(self.x, unit='s')

    def to_dict(self) -> Dict[str, Any]:
        return {'X': self.x, 'Y': self.y}


def load_data(filepath: str, x_col: str = 'x', y_col: str = 'y') -> pd.DataFrame:
    """
    读取CSV格式的时间序列数据并进行预处理和清洗

    参数:
        filepath: CSV文件的完整路径
        x_col: 横坐标列名；如果是时间列，会转换为POSIX秒，原始时间保留在Timestamp列
        y_col: 测量值列名

    返回:
        清洗后的DataFrame，包含X、Y两列（时间列存在时另有Timestamp列），按X升序排列
    """
    df = pd.read_csv(filepath)

    # 数据质量检查：验证必需的数据列是否存在
    missing_columns = [col for col in (x_col, y_col) if col not in df.columns]
    if missing_columns:
        raise ValueError(f"缺少必需的列: {missing_columns}")

    return prepare_series(df, x_col, y_col)


def prepare_series(df: pd.DataFrame, x_col: str, y_col: str) -> pd.DataFrame:
    """把任意DataFrame整理成标准的X/Y序列格式"""
    out = pd.DataFrame(index=df.index)

    x = df[x_col]
    if pd.api.types.is_numeric_dtype(x):
        out['X'] = pd.to_numeric(x, errors='coerce').astype(float)
    else:
        # 非数值列按时间解析，保留原始时间戳便于展示
        ts = pd.to_datetime(x, errors='coerce')
        out['Timestamp'] = ts
        out['X'] = _timestamps_to_seconds(ts)

    out['Y'] = pd.to_numeric(df[y_col], errors='coerce').astype(float)

    # 过滤掉缺失值，并按X稳定排序，保证横坐标非递减
    out = out.dropna(subset=['X', 'Y'])
    out = out.sort_values('X', kind='mergesort').reset_index(drop=True)
    return out


def _timestamps_to_seconds(ts: pd.Series) -> pd.Series:
    if ts.dt.tz is not None:
        ts = ts.dt.tz_convert('UTC').dt.tz_localize(None)
    epoch = pd.Timestamp('1970-01-01')
    return (ts - epoch).dt.total_seconds()


def dataframe_to_data_points(df: pd.DataFrame) -> List[DataPoint]:
    """将X/Y格式的DataFrame转换为DataPoint列表"""
    return [DataPoint(float(x), float(y)) for x, y in zip(df['X'].to_numpy(), df['Y'].to_numpy())]


def data_points_to_dataframe(points: Iterable[DataPoint]) -> pd.DataFrame:
    """将DataPoint序列转换为DataFrame"""
    data = [point.to_dict() for point in points]
    return pd.DataFrame(data, columns=['X', 'Y'])


def scan_datasets(directory: str) -> List[Tuple[str, int]]:
    """
    扫描目录下的所有CSV数据集文件，返回文件名和数据点数

    参数:
        directory: 数据目录路径

    返回:
        数据集信息列表，每个元素是(文件名, 点数)的元组
    """
    datasets = []
    if not os.path.exists(directory):
        return datasets

    for file in sorted(os.listdir(directory)):
        if file.endswith('.csv'):
            filepath = os.path.join(directory, file)
            try:
                point_count = len(pd.read_csv(filepath))
            except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError):
                # 文件损坏或为空，跳过
                continue
            datasets.append((file, point_count))
    return datasets
