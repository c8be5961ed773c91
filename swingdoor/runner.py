"""
统一的序列压缩接口
执行压缩算法、计时并计算评估指标
"""

import time
from dataclasses import dataclass
from typing import Any, Dict

import pandas as pd

from . import get_available_algorithms, run_algorithm
from .utils.metrics import evaluate_compression


@dataclass
class CompressionResult:
    """压缩算法结果"""
    algorithm: str
    compressed: pd.DataFrame
    compression_ratio: float
    elapsed_time: float
    metrics: Dict[str, Any]


def compress_series(series: pd.DataFrame,
                    algorithm: str,
                    params: Dict,
                    verbose: bool = True) -> CompressionResult:
    """
    统一的序列压缩接口

    参数:
        series: 输入序列DataFrame（X、Y列）
        algorithm: 算法名称（见get_available_algorithms()）
        params: 算法参数，未给出的参数使用算法默认值
        verbose: 是否打印评估报告

    返回:
        CompressionResult 对象
    """
    algorithms = get_available_algorithms()
    if algorithm not in algorithms:
        raise ValueError(f"未知算法: {algorithm}")

    merged = {**algorithms[algorithm]['default_params'], **params}

    start_time = time.perf_counter()
    compressed = run_algorithm(algorithm, series, merged)
    elapsed_time = time.perf_counter() - start_time

    metrics = evaluate_compression(series, compressed, algorithm, elapsed_time,
                                   deviation=merged.get('deviation'), verbose=verbose)

    return CompressionResult(
        algorithm=algorithm,
        compressed=compressed,
        compression_ratio=metrics['compression_ratio'],
        elapsed_time=elapsed_time,
        metrics=metrics
    )
