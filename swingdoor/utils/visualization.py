import pandas as pd
import matplotlib
# 只输出图片文件，不需要图形界面
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import matplotlib.gridspec as gridspec  # noqa: E402
from typing import Dict, Optional  # noqa: E402


def visualize_series(original_df: pd.DataFrame,
                     compressed: Dict[str, pd.DataFrame],
                     output_file: str = "compression.png",
                     deviation: Optional[float] = None) -> None:
    """使用matplotlib绘制原始序列和各压缩结果，上方为压缩结果（叠加原始序列），底部为原始序列"""
    if not compressed:
        raise ValueError("至少需要一个压缩结果")

    compressed = {name: df for name, df in compressed.items() if len(df) > 0}
    n_compressed = len(compressed)

    plt.rcParams['font.sans-serif'] = ['SimHei', 'Arial Unicode MS', 'DejaVu Sans']
    plt.rcParams['axes.unicode_minus'] = False

    fig = plt.figure(figsize=(12, 3.0 * n_compressed + 3.0))
    gs = gridspec.GridSpec(n_compressed + 1, 1, height_ratios=[1] * n_compressed + [0.9])

    colors = ['blue', 'green', 'orange', 'purple', 'brown', 'pink', 'gray', 'olive', 'cyan']

    x = original_df['X'].to_numpy(dtype=float)
    y = original_df['Y'].to_numpy(dtype=float)

    for i, (name, df) in enumerate(compressed.items()):
        ax = fig.add_subplot(gs[i, 0])
        ax.set_facecolor('white')
        color = colors[i % len(colors)]

        ax.plot(x, y, '-', color='lightgray', linewidth=1, label=f'原始序列 ({len(original_df)} 点)')
        cx = df['X'].to_numpy(dtype=float)
        cy = df['Y'].to_numpy(dtype=float)
        ax.plot(cx, cy, 'o-', color=color, linewidth=1.5, markersize=4,
                label=f'{name} ({len(df)} 点)', alpha=0.8)

        # 偏差带
        if deviation is not None:
            ax.fill_between(cx, cy - deviation, cy + deviation, color=color, alpha=0.1)

        ax.set_title(f'{name} 压缩结果', fontsize=12, fontweight='bold')
        ax.set_xlabel('x', fontsize=10)
        ax.set_ylabel('y', fontsize=10)
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper right')

    original_ax = fig.add_subplot(gs[-1, 0])
    original_ax.set_facecolor('white')
    original_ax.plot(x, y, '.-', color='red', linewidth=1, markersize=3, alpha=0.7,
                     label=f'原始序列 ({len(original_df)} 点)')
    original_ax.set_title('原始序列', fontsize=12, fontweight='bold')
    original_ax.set_xlabel('x', fontsize=10)
    original_ax.set_ylabel('y', fontsize=10)
    original_ax.grid(True, alpha=0.3)
    original_ax.legend(loc='upper right')

    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight', facecolor='white')
    plt.close(fig)
