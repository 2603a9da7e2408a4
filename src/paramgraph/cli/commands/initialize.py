"""
Init Command - Project bootstrap.

This module handles the `paramgraph init` command, which writes a
configuration file with the default settings.
"""

from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from ...config import CONFIG_DIR, Settings

console = Console()


def create_gitignore(config_dir: Path):
    """Ensure the .paramgraph/ directory is ignored by git."""
    gitignore = config_dir.parent / ".gitignore"
    entry = "\n# paramgraph\n.paramgraph/\n"

    if not gitignore.exists():
        with open(gitignore, "w") as f:
            f.write(entry)
    else:
        content = gitignore.read_text()
        if ".paramgraph" not in content:
            with open(gitignore, "a") as f:
                f.write(entry)


@click.command()
@click.option("--force", is_flag=True, help="Overwrite an existing configuration")
@click.option("--db", "db_path", default=None, help="SQLite database path to record in the config")
def init(force: bool, db_path: str | None):
    """
    Initialize paramgraph in the current directory.
    """
    root_dir = Path.cwd()
    config_dir = root_dir / CONFIG_DIR
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        if not Confirm.ask(f"{config_file} already exists. Overwrite?", default=False):
            console.print("[yellow]Aborted.[/yellow]")
            return

    settings = Settings()
    if db_path:
        settings = settings.model_copy(update={"db_path": Path(db_path)})

    config_dir.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        yaml.dump(settings.to_yaml_dict(), f, sort_keys=False, default_flow_style=False)

    create_gitignore(config_dir)

    console.print(Panel.fit(
        f"Config: [cyan]{config_file}[/cyan]\n"
        f"Database: [cyan]{settings.db_path}[/cyan]\n\n"
        "Next: [bold]paramgraph seed parameters.yaml[/bold]",
        title="✨ Initialized successfully",
    ))
