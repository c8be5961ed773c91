#!/usr/bin/env python3
"""
生成演示时间序列数据
用于测试和展示旋转门压缩算法效果
"""

import os
import numpy as np
import pandas as pd
from datetime import datetime, timedelta


def generate_ramp_series(n_points=500, noise=0.05, seed=42):
    """
    生成带噪声的分段线性序列（模拟升温、保温、降温过程）

    参数:
        n_points: 数据点数量
        noise: 噪声标准差
        seed: 随机种子
    """
    rng = np.random.default_rng(seed)
    start_time = datetime(2021, 1, 1, 8, 0, 0)

    third = n_points // 3
    values = np.concatenate([
        np.linspace(20.0, 80.0, third),            # 升温
        np.full(third, 80.0),                      # 保温
        np.linspace(80.0, 25.0, n_points - 2 * third)  # 降温
    ])
    values = values + rng.normal(0, noise, n_points)

    times = [start_time + timedelta(seconds=10 * i) for i in range(n_points)]
    return pd.DataFrame({'x': times, 'y': values})


def generate_sine_series(n_points=800, spike_prob=0.01, seed=7):
    """
    生成正弦波，偶尔夹带尖峰（模拟振动或压力传感器）
    """
    rng = np.random.default_rng(seed)
    x = np.arange(n_points, dtype=float)
    y = 10.0 * np.sin(2 * np.pi * x / 200.0) + rng.normal(0, 0.1, n_points)

    spikes = rng.random(n_points) < spike_prob
    y[spikes] += rng.choice([-1.0, 1.0], spikes.sum()) * rng.uniform(5.0, 15.0, spikes.sum())

    return pd.DataFrame({'x': x, 'y': y})


def generate_step_series(n_points=600, seed=123):
    """
    生成阶跃信号（模拟阀门开度等离散设定值），采样间隔不均匀
    """
    rng = np.random.default_rng(seed)
    x = np.cumsum(rng.uniform(0.5, 2.0, n_points))

    levels = []
    level = 0.0
    for _ in range(n_points):
        if rng.random() < 0.02:
            level = float(rng.choice([0.0, 25.0, 50.0, 75.0, 100.0]))
        levels.append(level)

    y = np.asarray(levels) + rng.normal(0, 0.2, n_points)
    return pd.DataFrame({'x': x, 'y': y})


def main():
    """生成演示数据集"""
    print("生成演示时间序列数据...")

    out_dir = os.path.dirname(os.path.abspath(__file__))

    datasets = [
        ('furnace_ramp', generate_ramp_series()),
        ('vibration_sine', generate_sine_series()),
        ('valve_steps', generate_step_series()),
    ]

    for name, df in datasets:
        filename = os.path.join(out_dir, f'{name}.csv')
        df.to_csv(filename, index=False)
        print(f"  保存至: {filename} ({len(df)} 点)")
        print(f"  取值范围: {df['y'].min():.2f} - {df['y'].max():.2f}")
        print()

    print("演示数据生成完成！")
    print("\n使用方法:")
    print("1. python main.py demo_data/vibration_sine.csv -d 0.5 -p sine.png")
    print("2. python main.py demo_data/furnace_ramp.csv -d 0.2 --time-gaps --max-gap 10min")
    print("3. 启动后端服务后在 /datasets 中查看数据集")


if __name__ == '__main__':
    main()
