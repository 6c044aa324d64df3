from pathlib import Path

import click

from storage_deployment.constants import DEPLOY_RESULT_FILEPATH

output_option = click.option(
    "--output",
    "-o",
    help="Deployment result file; overwritten on each run.",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEPLOY_RESULT_FILEPATH,
    show_default=True,
)

registry_option = click.option(
    "--registry",
    "-r",
    help="Optional JSON registry to also record the deployment in.",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
)

autosign_option = click.option(
    "--autosign",
    help="Sign deployment transactions without asking for confirmation.",
    is_flag=True,
    default=False,
)

verify_option = click.option(
    "--verify",
    help="Publish contract sources to the network's block explorer.",
    is_flag=True,
    default=False,
)

account_alias_option = click.option(
    "--account",
    "-a",
    "account_alias",
    help="Alias of the deployer account; local networks always use the first test account.",
    default=None,
)
