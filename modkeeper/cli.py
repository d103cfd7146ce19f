"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import click
import toml
import yaml
from loguru import logger

from modkeeper import __version__
from modkeeper.events import EventBus
from modkeeper.events.builtin import JsonEventListener, NotifyListener, ProgressListener
from modkeeper.exceptions import ModKeeperError
from modkeeper.logger import setup_logger
from modkeeper.models import ModKeeperConfig
from modkeeper.orchestrator import UpdateOrchestrator

T = TypeVar("T")


def load_config(config_path: str) -> dict:
    """加载配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            return toml.load(config_path)
        elif suffix == ".json":
            return json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(path.read_text(encoding="utf-8"))
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise click.ClickException(f"配置文件解析失败: {e}")
    raise click.ClickException(f"不支持的配置文件格式: {suffix}")


def build_events(json_events: bool) -> EventBus:
    events = EventBus()
    if json_events:
        events.register_listener(JsonEventListener())
    else:
        events.register_listener(ProgressListener())
        events.register_listener(NotifyListener())
    return events


def run_with_orchestrator(
    ctx: click.Context, action: Callable[[UpdateOrchestrator], Awaitable[T]]
) -> T:
    """构建协调器并在事件循环中执行操作"""
    events = build_events(ctx.obj["json_events"])

    async def runner(config: ModKeeperConfig) -> T:
        async with UpdateOrchestrator(config, events=events) as orchestrator:
            result = await action(orchestrator)
            await events.drain()
            return result

    try:
        config = ModKeeperConfig.from_dict(load_config(ctx.obj["config_path"]))
        return asyncio.run(runner(config))
    except ModKeeperError as e:
        logger.error(f"执行失败: {e}")
        raise click.ClickException(str(e))


@click.group()
@click.option(
    "-c",
    "--config",
    "config_path",
    default="modkeeper.toml",
    show_default=True,
    help="配置文件路径 (toml/json/yaml)",
)
@click.option("--json-events", is_flag=True, help="以 JSON 行输出进度与通知事件")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config_path: str, json_events: bool, debug: bool):
    """ModKeeper - 游戏模组更新管理工具"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["json_events"] = json_events

    # JSON 事件独占 stdout，日志改写到 stderr
    sink = sys.stderr if json_events else sys.stdout
    setup_logger(level="DEBUG" if debug else None, sink=sink)


@main.command()
@click.pass_context
def catalog(ctx: click.Context):
    """列出远端目录中的模组版本"""
    remote = run_with_orchestrator(ctx, lambda o: o.fetch_catalog())
    if not remote:
        click.echo("远端目录为空或不可用")
        return
    for name, entry in sorted(remote.items()):
        click.echo(f"{name}\t{entry.version}\t{entry.download_url}")


@main.command()
@click.pass_context
def check(ctx: click.Context):
    """检查可用更新"""
    decisions = run_with_orchestrator(
        ctx, lambda o: o.check_updates_with_notifications()
    )
    for decision in sorted(decisions, key=lambda d: d.name):
        if decision.is_new:
            state = "新模组"
        elif decision.needs_update:
            state = "可更新"
        else:
            state = "最新"
        current = decision.current_version or "-"
        click.echo(f"{decision.name}\t{current} -> {decision.remote_version}\t{state}")


@main.command()
@click.argument("name")
@click.pass_context
def update(ctx: click.Context, name: str):
    """更新单个模组"""
    summary = run_with_orchestrator(ctx, lambda o: o.update_by_name(name))
    click.echo(summary)


@main.command("update-all")
@click.pass_context
def update_all(ctx: click.Context):
    """更新所有需要更新的模组"""
    updated = run_with_orchestrator(ctx, lambda o: o.update_all())
    if not updated:
        click.echo("没有模组被更新")
    for line in updated:
        click.echo(line)


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """显示本地注册表"""
    registry = run_with_orchestrator(ctx, lambda o: o.store.load())
    click.echo(f"上次检查: {registry.last_check}")
    for name, record in sorted(registry.records.items()):
        checksum = (record.checksum or "-")[:12]
        click.echo(
            f"{name}\t{record.version}\t{record.last_updated}\t{checksum}\t{record.installed_path}"
        )


if __name__ == "__main__":
    main()
