"""
swingdoor.utils 包：导出 dataloader、metrics、visualization 的常用接口
"""

from .dataloader import (
    DataPoint, load_data, prepare_series, scan_datasets,
    dataframe_to_data_points, data_points_to_dataframe
)
from .metrics import calculate_deviation_metrics, evaluate_compression
from .visualization import visualize_series

__all__ = [
    'DataPoint', 'load_data', 'prepare_series', 'scan_datasets',
    'dataframe_to_data_points', 'data_points_to_dataframe',
    'calculate_deviation_metrics', 'evaluate_compression',
    'visualize_series'
]
