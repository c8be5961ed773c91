import importlib
import logging
from typing import Dict, Any
from pathlib import Path

import pandas as pd

from .utils.dataloader import (
    load_data, prepare_series, scan_datasets,
    dataframe_to_data_points, data_points_to_dataframe, DataPoint
)
from .utils.metrics import calculate_deviation_metrics, evaluate_compression
from .utils.visualization import visualize_series
from .compression import Compression, DataPointIterator, ObjectDisposedError
from .algorithms.swinging_door import SwingingDoorCompression

logger = logging.getLogger(__name__)

_ALGORITHMS_DIR = Path(__file__).parent / "algorithms"
_AVAILABLE_ALGORITHMS = {}


def _load_algorithms():
    if not _ALGORITHMS_DIR.exists():
        return

    for py_file in sorted(_ALGORITHMS_DIR.glob("*.py")):
        module_name = py_file.stem
        if module_name.startswith('_'):
            continue

        try:
            module = importlib.import_module(f".algorithms.{module_name}", package=__name__)
        except ImportError as e:
            logger.warning("加载算法模块 %s 失败: %s", module_name, e)
            continue

        if hasattr(module, 'compress') and hasattr(module, 'DISPLAY_NAME'):
            _AVAILABLE_ALGORITHMS[module_name] = {
                'module': module,
                'display_name': getattr(module, 'DISPLAY_NAME', module_name),
                'default_params': getattr(module, 'DEFAULT_PARAMS', {}),
                'param_help': getattr(module, 'PARAM_HELP', {}),
                'compress_func': module.compress
            }


_load_algorithms()


def get_available_algorithms() -> Dict[str, Dict[str, Any]]:
    return _AVAILABLE_ALGORITHMS.copy()


def run_algorithm(algorithm_key: str, points: pd.DataFrame, params: Dict) -> pd.DataFrame:
    if algorithm_key not in _AVAILABLE_ALGORITHMS:
        raise ValueError(f"未知算法: {algorithm_key}")
    alg_info = _AVAILABLE_ALGORITHMS[algorithm_key]
    return alg_info['compress_func'](points, params)


from .runner import CompressionResult, compress_series  # noqa: E402

__version__ = "1.0.0"
__all__ = [
    'DataPoint', 'load_data', 'prepare_series', 'scan_datasets',
    'dataframe_to_data_points', 'data_points_to_dataframe',
    'Compression', 'DataPointIterator', 'ObjectDisposedError', 'SwingingDoorCompression',
    'get_available_algorithms', 'run_algorithm', 'CompressionResult', 'compress_series',
    'calculate_deviation_metrics', 'evaluate_compression', 'visualize_series'
]
