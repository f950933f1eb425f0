"""
Build 命令实现

合并配置文件与命令行参数，执行构建并打印 sources.list 用法说明。
"""

import traceback
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ... import __author__, __email__, __version__
from ...config import ConfigError, apply_overrides, load_config
from ...utils.logging import OutputLevel, set_log_file, set_log_level
from ...utils.paths import expand_path


console = Console()
err_console = Console(stderr=True)


def version_callback(value: Optional[bool]) -> None:
    """显示版本信息"""
    if value:
        console.print(f"termux-apt-builder v{__version__}\nby {__author__}\n{__email__}", highlight=False)
        raise typer.Exit()


def print_usage_hint(output: str, distribution: str, components: list, signed: bool) -> None:
    """打印如何在 Termux 中使用该仓库"""
    console.print()
    console.print(f"请将 [cyan]{escape(output)}[/cyan] 目录发布为 $REPO_URL")
    console.print()
    console.print("用户在 $PREFIX/etc/apt/sources.list.d 下添加一个文件，内容为:")
    for component in components:
        trusted = "" if signed else "[trusted=yes] "
        console.print(f"   deb {trusted}$REPO_URL {distribution} {component}", markup=False, highlight=False)
    console.print()
    if not signed:
        console.print("仓库使用 GPG 密钥签名后不再需要 [trusted=yes]", markup=False)


def build_command(
    input_dir: Optional[str] = typer.Option(None, "--input", "-i", help="存放 .deb 文件的目录"),
    output_dir: Optional[str] = typer.Option(None, "--output", "-o", help="仓库目录树的根目录"),
    distribution: Optional[str] = typer.Option(None, "--distribution", help="发行版目录名 (默认 termux)"),
    component: Optional[str] = typer.Option(None, "--component", help="根目录软件包的组件名 (默认 extras)"),
    use_hard_links: Optional[bool] = typer.Option(None, "--use-hard-links", help="使用硬链接代替复制 .deb 文件"),
    sign: Optional[bool] = typer.Option(None, "--sign", help="使用 GPG 密钥签名仓库"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML 配置文件路径"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="显示版本信息"
    ),
) -> None:
    """构建 APT 仓库

    示例:
        termux-apt-builder --input ./debs --output ./repo
        termux-apt-builder -i ./debs -o ./repo --distribution termux --component extras --sign
    """
    from ...build.builder import Builder

    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)
    if log_file:
        try:
            set_log_file(log_file)
        except OSError as e:
            console.print(f"[yellow]无法写入日志文件 {escape(log_file)}: {escape(str(e))}[/yellow]")

    try:
        config_obj = load_config(config)
        config_obj = apply_overrides(config_obj, {
            "input": expand_path(input_dir) if input_dir else None,
            "output": expand_path(output_dir) if output_dir else None,
            "repository.distribution": distribution,
            "repository.default_component": component,
            # 未给出的开关保留配置文件中的值
            "use_hard_links": True if use_hard_links else None,
            "signing.enabled": True if sign else None,
        })
    except ConfigError as e:
        err_console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    if config_obj.input is None or config_obj.output is None:
        err_console.print("[red]必须指定 --input 和 --output（或在配置文件中设置 input/output）[/red]")
        err_console.print("使用 --help 查看全部参数")
        raise typer.Exit(1)

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        if verbose and total > 0:
            percentage = (current / total) * 100
            console.print(f"[blue]{stage}[/blue]: {escape(message)} ({percentage:.0f}%)")

    try:
        result = Builder().build(config_obj, progress_callback=progress_callback)
    except Exception as e:
        err_console.print(f"[red]✗ 构建过程中发生意外错误[/red]: {escape(str(e))}")
        if log_file:
            err_console.print(f"[yellow]详细错误信息:[/yellow]\n{escape(traceback.format_exc())}")
        raise typer.Exit(1)

    if not result.success:
        err_console.print(f"[red]✗ 构建失败[/red]: {escape(str(result.error))}")
        if log_file:
            err_console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ 仓库构建完成[/green]: {escape(str(result.release_path))}")
    if config_obj.signing.enabled and not result.signed_files:
        console.print("[yellow]签名未成功，仓库未签名[/yellow]")

    print_usage_hint(
        str(config_obj.output),
        config_obj.repository.distribution,
        result.components,
        signed=bool(result.signed_files),
    )
