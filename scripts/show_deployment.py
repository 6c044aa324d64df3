#!/usr/bin/python3

import click

from storage_deployment.constants import DEPLOY_RESULT_FILEPATH
from storage_deployment.registry import read_deployment_record


@click.command(name="show-deployment")
@click.option(
    "--filepath",
    "-f",
    help="Deployment result file to display.",
    type=click.Path(exists=True, dir_okay=False),
    default=str(DEPLOY_RESULT_FILEPATH),
    show_default=True,
)
def cli(filepath):
    """Display the contracts of a previous deployment."""
    record = read_deployment_record(filepath)
    click.secho(f"Deployed by {record.account} (block {record.block_number})", fg="green")
    for index, (name, address) in enumerate(record.contracts.items(), start=1):
        click.secho(f"    {index}. {name} {address}", fg="cyan")


if __name__ == "__main__":
    cli()
