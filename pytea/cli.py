"""CLI interface for pytea."""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import click

from .api import GiteaClient
from .config import DEFAULT_SCRIPT_FOLDER, config
from .exceptions import PyteaError
from .output import OutputFormatter
from .store import GiteaStore
from .sync import ListResult, OperationResult, ReconciliationEngine, Role

logger = logging.getLogger(__name__)


def _role(script: bool, config_only: bool) -> Optional[Role]:
    if script and config_only:
        raise click.UsageError("--script and --config-only cannot be combined")
    if script:
        return Role.SCRIPT
    if config_only:
        return Role.CONFIG
    return None


def _require_config(ctx: Any) -> None:
    out: OutputFormatter = ctx.obj["out"]
    try:
        configured = config.is_configured()
    except PyteaError as e:
        out.error(str(e))
        ctx.exit(1)
    if not configured:
        out.error(
            f"No repository configured in {config.get_config_path()}. "
            "Run 'pytea init' first."
        )
        ctx.exit(1)


def _run(ctx: Any, operation: Callable[[ReconciliationEngine], OperationResult]) -> None:
    """Run one engine operation against the configured repository.

    Prints the result and exits with status 1 unless it was successful.
    """
    out: OutputFormatter = ctx.obj["out"]
    _require_config(ctx)

    try:
        with GiteaClient() as client:
            store = GiteaStore(client, author=config.author, email=config.email)
            engine = ReconciliationEngine(store, config.sync_settings(), out)
            result = operation(engine)
    except PyteaError as e:
        out.error(str(e))
        ctx.exit(1)

    if isinstance(result, ListResult):
        out.print_listing(result)
    else:
        out.print_result(result)

    if not result.success:
        ctx.exit(1)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    envvar="PYTEA_CONFIG",
    help="Configuration file (default: ~/.config/pytea/config.toml)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pytea")
@click.pass_context
def main(
    ctx: Any,
    config_path: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """pytea - Keep configuration files and scripts in a Gitea devops repository."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if config_path:
        config.set_config_path(Path(config_path))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pytea").setLevel(logging.DEBUG)
        # httpx logs every request on INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument("url")
@click.argument("repository")
@click.argument("owner")
@click.option("--token", "-t", help="Existing Gitea access token")
@click.option("--token-name", help="Name of the access token to create")
@click.option("--author", help="Commit author (default: OWNER)")
@click.option("--email", default="", help="Commit author e-mail")
@click.option(
    "--script-folder",
    default=DEFAULT_SCRIPT_FOLDER,
    show_default=True,
    help="Local folder scripts are deployed to",
)
@click.pass_context
def init(
    ctx: Any,
    url: str,
    repository: str,
    owner: str,
    token: Optional[str],
    token_name: Optional[str],
    author: Optional[str],
    email: str,
    script_folder: str,
) -> None:
    """Initialize the pytea configuration.

    URL: Base URL of the Gitea instance

    REPOSITORY: Name of the devops repository

    OWNER: User or organisation owning the repository

    Without --token you are asked for your Gitea username and password and
    a new access token is created.
    """
    out: OutputFormatter = ctx.obj["out"]
    config_path = config.get_config_path()

    if config_path.exists() and not click.confirm(
        f"{config_path} already exists. Overwrite?", default=False
    ):
        out.warning("Configuration cancelled.")
        ctx.exit(1)

    try:
        if not token:
            username = click.prompt("Gitea username")
            password = click.prompt("Gitea password", hide_input=True)
            created = GiteaClient.create_access_token(
                url, username, password, token_name=token_name
            )
            out.success(f"✓ Created {created}")
            token = created.sha1

        path = config.create(
            url=url,
            api_token=token,
            repository=repository,
            owner=owner,
            author=author,
            email=email,
            script_folder=script_folder,
        )
    except PyteaError as e:
        out.error(f"Initialization failed: {e}")
        ctx.exit(1)

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(path)),
            ("Repository", f"{owner}/{repository}"),
        ],
    )


@main.command("config")
@click.pass_context
def show_config(ctx: Any) -> None:
    """Show the effective configuration."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        items = config.as_display_items()
    except PyteaError as e:
        out.error(str(e))
        ctx.exit(1)
    out.print_summary("Configuration", items)


@main.command()
@click.pass_context
def info(ctx: Any) -> None:
    """Show the Gitea version and repository information."""
    out: OutputFormatter = ctx.obj["out"]
    _require_config(ctx)

    try:
        with GiteaClient() as client:
            version = client.get_version()
            repo = client.get_repository()
    except PyteaError as e:
        out.error(str(e))
        ctx.exit(1)

    owner = repo.owner.login if repo.owner else config.owner
    out.print_summary(
        "Repository Info",
        [
            ("Gitea version", version.version),
            ("URL", config.url or ""),
            ("Repository", repo.full_name or repo.name),
            ("Owner", owner or ""),
            ("Description", repo.description or "-"),
            ("Default branch", repo.default_branch),
            ("Empty", "yes" if repo.empty else "no"),
            ("Updated", repo.updated_at or "-"),
            ("Push access", "yes" if repo.permissions.push else "no"),
        ],
    )


@main.command("list")
@click.argument("feature_set", required=False)
@click.pass_context
def list_cmd(ctx: Any, feature_set: Optional[str]) -> None:
    """List feature sets, or the files of FEATURE_SET."""
    _run(ctx, lambda engine: engine.list(feature_set))


@main.command()
@click.argument("name")
@click.option("--message", "-m", help="Commit message")
@click.pass_context
def new(ctx: Any, name: str, message: Optional[str]) -> None:
    """Create an empty feature set NAME."""
    _run(ctx, lambda engine: engine.new(name, message=message))


@main.command()
@click.argument("name")
@click.argument("paths", nargs=-1)
@click.option("--script", "-s", is_flag=True, help="PATHS are script names")
@click.option(
    "--recursive", "-r", is_flag=True, help="Allow deleting whole directories"
)
@click.option("--message", "-m", help="Commit message")
@click.pass_context
def delete(
    ctx: Any,
    name: str,
    paths: tuple[str, ...],
    script: bool,
    recursive: bool,
    message: Optional[str],
) -> None:
    """Delete feature set NAME, or only PATHS inside it.

    Examples:
        pytea delete web                      # whole feature set
        pytea delete web etc/nginx -r         # a config directory
        pytea delete web deploy.sh --script   # a script
    """
    role = Role.SCRIPT if script else None
    _run(
        ctx,
        lambda engine: engine.delete(
            name, paths, role=role, recursive=recursive, message=message
        ),
    )


@main.command()
@click.argument("name")
@click.argument("path", required=False, type=click.Path())
@click.option("--script", "-s", is_flag=True, help="Push as script(s)")
@click.option(
    "--config-only", "-c", is_flag=True, help="Only push configuration files"
)
@click.option("--message", "-m", help="Commit message")
@click.pass_context
def push(
    ctx: Any,
    name: str,
    path: Optional[str],
    script: bool,
    config_only: bool,
    message: Optional[str],
) -> None:
    """Upload local files into feature set NAME.

    PATH: Local file or directory; without it, every file the feature
    set already contains is pushed again from its local counterpart
    (with --script: the whole script folder)
    """
    role = _role(script, config_only)
    _run(ctx, lambda engine: engine.push(name, path, role=role, message=message))


@main.command()
@click.argument("name")
@click.argument("path", required=False, type=click.Path())
@click.option("--script", "-s", is_flag=True, help="Only pull scripts")
@click.option(
    "--config-only", "-c", is_flag=True, help="Only pull configuration files"
)
@click.pass_context
def pull(
    ctx: Any,
    name: str,
    path: Optional[str],
    script: bool,
    config_only: bool,
) -> None:
    """Download feature set NAME onto this machine.

    PATH: Only pull files at or below this local path (a script name
    with --script)
    """
    role = _role(script, config_only)
    _run(ctx, lambda engine: engine.pull(name, path, role=role))


@main.command()
@click.argument("name")
@click.argument("new_name")
@click.option("--message", "-m", help="Commit message")
@click.pass_context
def rename(ctx: Any, name: str, new_name: str, message: Optional[str]) -> None:
    """Rename feature set NAME to NEW_NAME."""
    _run(ctx, lambda engine: engine.rename(name, new_name, message=message))


if __name__ == "__main__":
    main()
