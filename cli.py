import asyncio
import functools
import sys

import click
import httpx
from rich.console import Console
from rich.text import Text

# 导入 reports 以注册它们
import core.reports.builders

from config.credentials import CredentialName, CredentialStore
from config.logic import load_and_merge_configs
from config.models import Config
from core.auth.device_flow import DeviceCode, DeviceFlowAuthenticator
from core.contracts.models import PreparedReport, RepoInfo
from core.contracts.report import Report
from core.formatter.prompt_renderer import PromptRenderer
from core.pipeline import ReportPipeline
from core.registry import report_registry
from core.services import Services
from utils.errors import ConfigError, GitSenseException
from utils.format import mask_secret
from utils.git import ensure_github_remote
from utils.logger import setup_logger, logger

__version__ = "0.1.0"

ANTHROPIC_KEY_PREFIX = "sk-ant-"


def validate_anthropic_key(key: str) -> bool:
    return key.startswith(ANTHROPIC_KEY_PREFIX)


def handle_errors(func):
    """
    命令边界: 所有错误打印为一行 `Error: <message>` 并以状态码 1 退出
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        verbose = ctx.obj.get("verbose", False)
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.Abort):
            raise
        except (GitSenseException, httpx.HTTPError) as e:
            logger.opt(exception=verbose).error(f"{ctx.command.name} failed: {e}")
            Console(stderr=True).print(Text.assemble(("Error:", "bold red"), " ", str(e)))
            sys.exit(1)
        except Exception as e:
            # 未知错误: 日志文件里总是记录完整堆栈
            logger.opt(exception=True).error(f"{ctx.command.name} failed unexpectedly: {e!r}")
            Console(stderr=True).print(Text.assemble(("Error:", "bold red"), " ", f"Unexpected error: {e}"))
            sys.exit(1)
    return wrapper


def _load_config(ctx: click.Context) -> Config:
    return load_and_merge_configs(custom_config_path=ctx.obj.get("config_path"))


def _print_footer(console: Console, prepared: PreparedReport) -> None:
    console.print("─" * 40, style="dim")
    console.print(
        f"Based on {prepared.commit_count} commits and {prepared.pr_count} pull requests",
        style="dim",
    )


async def _generate(console: Console, pipeline: ReportPipeline, report: Report, repo: RepoInfo) -> None:
    try:
        with console.status("[bold green]Fetching history...[/bold green]") as status:
            prepared = await pipeline.prepare(report, repo, progress=status.update)

        if prepared.prompt is None:
            console.print(Text(f"⚠ {prepared.empty_message}", style="yellow"))
            return

        console.print()
        await pipeline.stream(prepared, lambda text: click.echo(text, nl=False))
        _print_footer(console, prepared)
    finally:
        await pipeline.services.aclose()


def _run_report(ctx: click.Context, name: str, subtitle: str = "", **options) -> None:
    """
    初始化并运行报告流水线
    """
    console: Console = ctx.obj["console"]
    config = _load_config(ctx)
    services = Services(config, CredentialStore())

    # Fail on a missing Anthropic key before touching git or GitHub.
    services.streamer()
    try:
        repo = ensure_github_remote()
        report = report_registry.create(name, config.reports, PromptRenderer(), **options)
    except Exception:
        # _generate closes the clients once it runs
        asyncio.run(services.aclose())
        raise

    console.print()
    console.print(Text(report.heading(repo), style="bold blue"))
    if subtitle:
        console.print(Text(subtitle, style="dim"))
    console.print()

    asyncio.run(_generate(console, ReportPipeline(services), report, repo))


@click.group()
@click.version_option(__version__, prog_name="git-sense")
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose logging for debugging.",
)
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a custom configuration file.",
)
@click.pass_context
def cli(ctx, verbose: bool, config_path: str):
    """
    AI-powered CLI tool to make sense of git history.
    """
    # 设置日志级别
    setup_logger(log_level="DEBUG" if verbose else "WARNING")

    ctx.obj = {"verbose": verbose, "config_path": config_path, "console": Console()}


async def _authenticate(console: Console, config: Config, store: CredentialStore) -> str:
    authenticator = DeviceFlowAuthenticator(config.github, store)
    try:
        with console.status("Starting GitHub authentication...") as status:
            def show_code(code: DeviceCode) -> None:
                console.print(Text.assemble(("→ ", "blue"), f"Open this URL in your browser: {code.verification_uri}"))
                console.print(Text.assemble(("→ ", "blue"), "Enter code: ", (code.user_code, "bold")))
                console.print()
                status.update("Waiting for authorization...")

            await authenticator.authenticate(show_code)
    finally:
        await authenticator.aclose()
    console.print(Text.assemble(("✓ ", "green"), "Authorized"))

    services = Services(config, store)
    try:
        user = await services.github().get_authenticated_user()
    finally:
        await services.aclose()
    return user.login


@cli.command("auth")
@click.pass_context
@handle_errors
def auth(ctx):
    """
    Authenticate with GitHub using OAuth.
    """
    console: Console = ctx.obj["console"]
    console.print()
    login = asyncio.run(_authenticate(console, _load_config(ctx), CredentialStore()))
    console.print(Text.assemble(("✓ ", "green"), f"Authenticated as {login}"))
    console.print("Token saved. You're ready to use git-sense!", style="dim")
    console.print()


async def _show_config(console: Console, config: Config, store: CredentialStore) -> None:
    console.print()
    console.print("Configuration:")

    if store.is_github_authenticated():
        services = Services(config, store)
        try:
            github = services.github()
            user = await github.get_authenticated_user()
            rate = await github.check_rate_limit()
            console.print(f"  GitHub: authenticated as @{user.login}", markup=False)
            console.print(f"  GitHub API: {rate.remaining} requests remaining", markup=False)
        except (GitSenseException, httpx.HTTPError) as e:
            logger.debug(f"Could not verify GitHub token: {e}")
            console.print("  GitHub: token stored (unable to verify)")
        finally:
            await services.aclose()
    else:
        console.print("  GitHub: not authenticated")

    anthropic_key = store.get(CredentialName.ANTHROPIC_KEY)
    if anthropic_key:
        console.print(f"  Anthropic: {mask_secret(anthropic_key)} (configured)", markup=False)
    else:
        console.print("  Anthropic: not configured")

    console.print(f"  Credentials file: {store.path}", style="dim", markup=False)
    console.print()


@cli.command("config")
@click.option("--anthropic-key", type=str, help="Store Anthropic API key.")
@click.option("--show", is_flag=True, help="Display current configuration.")
@click.option("--clear", is_flag=True, help="Clear all stored configuration.")
@click.pass_context
@handle_errors
def config_command(ctx, anthropic_key: str, show: bool, clear: bool):
    """
    Manage configuration settings.
    """
    console: Console = ctx.obj["console"]
    store = CredentialStore()

    if clear:
        store.clear()
        console.print(Text.assemble(("✓ ", "green"), "Configuration cleared."))
        return

    if anthropic_key:
        if not validate_anthropic_key(anthropic_key):
            raise ConfigError(f"Invalid API key format. Key should start with '{ANTHROPIC_KEY_PREFIX}'.")
        store.set(CredentialName.ANTHROPIC_KEY, anthropic_key)
        console.print(Text.assemble(("✓ ", "green"), "Anthropic API key saved."))
        return

    # --show 是默认行为
    asyncio.run(_show_config(console, _load_config(ctx), store))


@cli.command("summary")
@click.option("--weeks", type=str, help="Last n weeks (default 2).")
@click.option("--months", type=str, help="Last n months.")
@click.option("--all", "all_time", is_flag=True, help="Entire history.")
@click.pass_context
@handle_errors
def summary(ctx, weeks: str, months: str, all_time: bool):
    """
    Generate AI summary of repository activity.
    """
    _run_report(ctx, "summary", weeks=weeks, months=months, all_time=all_time)


@cli.command("contributors")
@click.option("--weeks", type=str, help="Last n weeks (default 4).")
@click.option("--months", type=str, help="Last n months.")
@click.pass_context
@handle_errors
def contributors(ctx, weeks: str, months: str):
    """
    Analyze contributor activity and focus areas.
    """
    _run_report(ctx, "contributors", weeks=weeks, months=months)


@cli.command("ask")
@click.argument("question")
@click.pass_context
@handle_errors
def ask(ctx, question: str):
    """
    Ask a question about repository history.
    """
    _run_report(ctx, "ask", subtitle=f'"{question}"', question=question)


@cli.command("changelog")
@click.option("--from", "from_ref", required=True, help="Starting reference.")
@click.option("--to", "to_ref", default="HEAD", show_default=True, help="Ending reference.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["pretty", "markdown"]),
    default="pretty",
    show_default=True,
    help="Output format.",
)
@click.pass_context
@handle_errors
def changelog(ctx, from_ref: str, to_ref: str, output_format: str):
    """
    Generate changelog between two git references.
    """
    _run_report(ctx, "changelog", from_ref=from_ref, to_ref=to_ref, output_format=output_format)


if __name__ == "__main__":
    cli()
