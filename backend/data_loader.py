"""
数据集加载和处理工具
用于发现和加载目录中的时间序列 CSV 数据集
"""

import logging
import pandas as pd
from typing import Optional, Dict, List, Tuple, Any
from pathlib import Path

from swingdoor import load_data

logger = logging.getLogger(__name__)


class DatasetInfo:
    """数据集信息类"""

    def __init__(self, name: str, path: str, sample_size: Optional[int] = None,
                 x_range: Optional[Tuple[float, float]] = None,
                 metadata: Optional[Dict[str, Any]] = None):
        self.name = name
        self.path = path
        self.sample_size = sample_size
        self.x_range = x_range
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'path': self.path,
            'sample_size': self.sample_size,
            'x_range': self.x_range,
            'metadata': self.metadata
        }


class DataLoader:
    """时间序列数据集加载器"""

    def __init__(self, data_root: str = "demo_data", max_datasets: int = None,
                 x_col: str = 'x', y_col: str = 'y'):
        """
        初始化数据加载器

        参数:
            data_root: 数据集根目录路径
            max_datasets: 最大数据集数量限制
            x_col: CSV中的横坐标列名
            y_col: CSV中的测量值列名
        """
        self.data_root = Path(data_root)
        self.max_datasets = max_datasets
        self.x_col = x_col
        self.y_col = y_col
        self.datasets = self._discover_datasets()

    def _discover_datasets(self) -> List[DatasetInfo]:
        """自动发现数据集"""
        datasets = []

        if not self.data_root.exists():
            logger.warning("数据目录不存在 %s", self.data_root)
            return datasets

        logger.info("正在扫描数据目录: %s", self.data_root)

        for csv_file in sorted(self.data_root.glob("*.csv")):
            # 统计信息推迟到实际加载数据时计算
            datasets.append(DatasetInfo(name=csv_file.stem, path=str(csv_file)))

            if self.max_datasets and len(datasets) >= self.max_datasets:
                break

        logger.info("发现 %d 个数据集", len(datasets))
        return datasets

    def get_datasets(self) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in self.datasets]

    def find_dataset(self, dataset_name: str) -> DatasetInfo:
        for dataset in self.datasets:
            if dataset.name == dataset_name:
                return dataset
        raise ValueError(f"数据集不存在: {dataset_name}")

    def load_dataset(self, dataset_name: str, max_samples: Optional[int] = None) -> pd.DataFrame:
        """
        加载数据集

        参数:
            dataset_name: 数据集名称
            max_samples: 最大采样数量（取前 max_samples 个点）
        """
        dataset = self.find_dataset(dataset_name)
        df = load_data(dataset.path, self.x_col, self.y_col)

        # 补充统计信息
        dataset.sample_size = len(df)
        if len(df) > 0:
            dataset.x_range = (float(df['X'].iloc[0]), float(df['X'].iloc[-1]))
            dataset.metadata = {
                'y_min': float(df['Y'].min()),
                'y_max': float(df['Y'].max()),
                'y_mean': float(df['Y'].mean())
            }

        if max_samples is not None:
            df = df.head(max_samples).copy()

        return df
