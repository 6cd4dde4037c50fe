"""CLI frontend for FlowForge.

Commands:
    flowforge workflow   List, show, create, edit, import and export workflows
    flowforge run        Start, watch and list runs
    flowforge dashboard  Summary statistics and recent activity

Example:
    $ flowforge workflow list
    $ flowforge run start 3 --watch
    $ flowforge run watch a1b2c3d4
"""

from flowforge.frontends.cli.main import cli, main

__all__ = ["cli", "main"]
