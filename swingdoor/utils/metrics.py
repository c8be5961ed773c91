import numpy as np  # 导入numpy数值计算库，用于插值和统计
import pandas as pd  # 导入pandas数据处理库，用于数据框操作
from typing import Dict, Optional


_ZERO_METRICS = {"mean": 0.0, "max": 0.0, "p95": 0.0, "rmse": 0.0}


def reconstruct(original_df: pd.DataFrame,
                compressed_df: pd.DataFrame,
                x_col: str = "X",
                y_col: str = "Y") -> np.ndarray:
    """用压缩后的点做分段线性插值，在原始点的x处重建y值"""
    xp = compressed_df[x_col].to_numpy(dtype=float)
    fp = compressed_df[y_col].to_numpy(dtype=float)
    x = original_df[x_col].to_numpy(dtype=float)
    return np.interp(x, xp, fp)


def calculate_deviation_metrics(original_df: pd.DataFrame,
                                compressed_df: pd.DataFrame,
                                x_col: str = "X",
                                y_col: str = "Y") -> Dict[str, float]:
    """
    计算重建误差指标。
    对压缩后的序列做线性插值，与每个原始点的y值比较，返回绝对误差的均值、最大值、
    95分位数和均方根误差。
    """
    if len(compressed_df) == 0 or len(original_df) == 0:
        return dict(_ZERO_METRICS)

    y = original_df[y_col].to_numpy(dtype=float)
    err = np.abs(y - reconstruct(original_df, compressed_df, x_col, y_col))

    return {
        "mean": float(err.mean()),
        "max": float(err.max()),
        "p95": float(np.percentile(err, 95)),
        "rmse": float(np.sqrt(np.mean(err ** 2))),
    }


def calculate_within_deviation(original_df: pd.DataFrame,
                               compressed_df: pd.DataFrame,
                               deviation: float,
                               x_col: str = "X",
                               y_col: str = "Y") -> float:
    """重建误差不超过deviation的原始点所占比例"""
    if len(original_df) == 0:
        return 1.0
    if len(compressed_df) == 0:
        return 0.0

    y = original_df[y_col].to_numpy(dtype=float)
    err = np.abs(y - reconstruct(original_df, compressed_df, x_col, y_col))
    # 浮点误差容忍
    tolerance = 1e-9 * max(1.0, abs(deviation))
    return float(np.mean(err <= deviation + tolerance))


def evaluate_compression(original_df: pd.DataFrame,
                         compressed_df: pd.DataFrame,
                         algorithm_name: str,
                         elapsed_time: Optional[float] = None,
                         deviation: Optional[float] = None,
                         verbose: bool = True) -> dict:
    N = len(original_df)
    M = len(compressed_df)
    compression_ratio = (1 - M / N) * 100 if N > 0 else 0.0
    rate = N / M if M > 0 else 0.0
    error_metrics = calculate_deviation_metrics(original_df, compressed_df)

    within = None
    if deviation is not None:
        within = calculate_within_deviation(original_df, compressed_df, deviation)

    if verbose:
        print(f"\n{'='*60}")
        print(f"算法: {algorithm_name}")
        print(f"{'='*60}")
        print(f"原始点数: {N}")
        print(f"压缩后点数: {M}")
        print(f"压缩率: {compression_ratio:.2f}%")
        print(f"压缩倍数: {rate:.2f}")
        print(f"误差均值: {error_metrics['mean']:.4f}")
        print(f"误差最大值: {error_metrics['max']:.4f}")
        print(f"误差 95分位数: {error_metrics['p95']:.4f}")
        print(f"均方根误差: {error_metrics['rmse']:.4f}")
        if within is not None:
            print(f"偏差范围内的点: {within * 100:.2f}%")
        if elapsed_time is not None:
            print(f"运行时间: {elapsed_time:.4f} 秒")
        print(f"{'='*60}\n")

    result = {
        'algorithm': algorithm_name,
        'original_points': N,
        'compressed_points': M,
        'compression_ratio': compression_ratio,
        'rate': rate,
        'error_mean': error_metrics['mean'],
        'error_max': error_metrics['max'],
        'error_p95': error_metrics['p95'],
        'error_rmse': error_metrics['rmse'],
        'elapsed_time': elapsed_time
    }
    if within is not None:
        result['within_deviation'] = within
    return result
