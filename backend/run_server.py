#!/usr/bin/env python3
"""
旋转门压缩服务启动脚本

使用方法:
    python run_server.py [--host 0.0.0.0] [--port 8000] [--reload]

API 文档: http://<host>:<port>/docs
数据目录可通过环境变量 SWINGDOOR_DATA_ROOT 指定（默认为 demo_data）
"""

import argparse
import logging
import sys
from pathlib import Path

# 添加当前目录到 Python 路径，以便正确导入模块
current_dir = Path(__file__).parent
if str(current_dir) not in sys.path:
    sys.path.insert(0, str(current_dir))


def create_server_parser():
    """创建服务启动参数解析器"""
    parser = argparse.ArgumentParser(description='旋转门压缩服务')
    parser.add_argument('--host', default='0.0.0.0', help='监听地址')
    parser.add_argument('--port', type=int, default=8000, help='监听端口')
    parser.add_argument('--reload', action='store_true', help='代码修改后自动重载（开发用）')
    parser.add_argument('--log-level', default='info',
                        choices=['critical', 'error', 'warning', 'info', 'debug'],
                        help='日志级别')
    return parser


def main(argv=None):
    args = create_server_parser().parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    import uvicorn

    print("启动旋转门压缩服务...")
    print(f"服务器地址: http://{args.host}:{args.port}")
    print(f"API 文档: http://{args.host}:{args.port}/docs")

    uvicorn.run("api:app", host=args.host, port=args.port,
                reload=args.reload, log_level=args.log_level)


if __name__ == "__main__":
    main()
