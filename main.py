import sys
from pathlib import Path

# 确保项目根目录在sys.path中，以便直接运行脚本时包导入正常工作
project_root = str(Path(__file__).resolve().parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)


def main():
    # 从包中导入并运行命令行入口
    from swingdoor.cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
