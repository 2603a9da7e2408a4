"""
paramgraph CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import click

from ..config import configure_logging, load_settings
from ..core.exceptions import ConfigError
from .commands import check, edit, evaluate, init, seed


@click.group()
@click.version_option(package_name="paramgraph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """paramgraph: Conditional parameter dependency graphs.

    Defines which task parameters appear once a parent parameter is set
    to a given option, and checks that the result stays acyclic.

    \b
    Quick Start:
      paramgraph init
      paramgraph seed parameters.yaml
      paramgraph connect tipo_tarea Muros tipo_de_muro
      paramgraph evaluate -s tipo_tarea=Muros
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        raise click.ClickException(str(e))
    configure_logging(settings, verbose)


# Register commands
main.add_command(init)
main.add_command(seed.seed)
main.add_command(check.check)
main.add_command(edit.connect)
main.add_command(edit.disconnect)
main.add_command(evaluate.evaluate)
main.add_command(evaluate.preview)

if __name__ == "__main__":
    main()
