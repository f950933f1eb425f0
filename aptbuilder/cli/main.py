"""
termux-apt-builder CLI 主入口

单命令接口：扫描输入目录并构建仓库。
"""

import typer

from .commands import build


app = typer.Typer(
    name="termux-apt-builder",
    help="从 .deb 文件目录构建 APT 软件仓库",
    rich_markup_mode="rich",
    add_completion=False,
)

app.command("build", help="构建仓库")(build.build_command)


def main() -> None:
    """控制台脚本入口"""
    app()


if __name__ == "__main__":
    main()
