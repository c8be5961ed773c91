"""
旋转门压缩命令行工具

读取CSV时间序列，执行旋转门压缩，打印评估报告，并可保存压缩结果和对比图
"""

import argparse
import logging
import sys

import pandas as pd

from .utils.dataloader import load_data
from .utils.visualization import visualize_series
from .runner import compress_series


def create_cli_parser():
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        description='旋转门时间序列压缩工具',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  python main.py data.csv -d 0.5 -o result.csv -p plot.png
  python main.py data.csv -d 0.5 --max-gap 3600 --min-gap 10
  python main.py data.csv -d 0.5 --time-gaps --max-gap 1h --min-gap 30s
  python main.py data.csv -d 0.5 --strategy sequential
        """
    )

    parser.add_argument('input_file', help='输入的时间序列文件路径（CSV格式）')

    parser.add_argument('-d', '--deviation', type=float, default=1.0,
                        help='y方向允许偏差（与测量值同单位）')
    parser.add_argument('--max-gap', help='x方向最大间隔，超过后强制保留')
    parser.add_argument('--min-gap', help='x方向最小间隔，越界后该范围内的点被跳过')
    parser.add_argument('--time-gaps', action='store_true',
                        help='把 --max-gap/--min-gap 解释为时间长度（如 5min、1h）')
    parser.add_argument('--strategy', choices=['indexed', 'sequential'], default='indexed',
                        help='遍历方式')

    parser.add_argument('--x-col', default='x', help='横坐标列名（数值或时间）')
    parser.add_argument('--y-col', default='y', help='测量值列名')

    parser.add_argument('-o', '--output', help='压缩结果输出文件路径（CSV格式）')
    parser.add_argument('-p', '--plot', help='对比图输出文件路径（PNG格式）')
    parser.add_argument('-v', '--verbose', action='store_true', help='输出调试日志')

    return parser


def parse_gap(value, as_time: bool):
    """把命令行中的间隔参数转换为x单位（时间长度换算为秒）"""
    if value is None:
        return None
    if as_time:
        return pd.Timedelta(value).total_seconds()
    return float(value)


def main(argv=None):
    """主函数"""
    parser = create_cli_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        print(f"正在加载数据文件: {args.input_file}")
        df = load_data(args.input_file, args.x_col, args.y_col)
        print(f"成功加载 {len(df)} 个数据点")

        params = {
            'deviation': args.deviation,
            'max_delta_x': parse_gap(args.max_gap, args.time_gaps),
            'min_delta_x': parse_gap(args.min_gap, args.time_gaps),
            'strategy': args.strategy,
        }

        print("\n执行旋转门算法...")
        result = compress_series(df, 'swinging_door', params)
        print(f"压缩完成！保留 {len(result.compressed)} 个点，压缩率 {result.compression_ratio:.1f}%")

        if args.output:
            result.compressed.to_csv(args.output, index=False)
            print(f"压缩结果已保存至: {args.output}")

        if args.plot:
            visualize_series(df, {'旋转门': result.compressed}, output_file=args.plot,
                             deviation=args.deviation)
            print(f"对比图已保存至: {args.plot}")

    except (OSError, ValueError) as e:
        print(f"错误: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
