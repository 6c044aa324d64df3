#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, network_option

from storage_deployment.config import DeploymentConfig
from storage_deployment.options import (
    account_alias_option,
    autosign_option,
    output_option,
    registry_option,
    verify_option,
)
from storage_deployment.params import Deployer
from storage_deployment.registry import (
    format_deployment_record,
    registry_from_deployments,
    write_deployment_record,
)
from storage_deployment.sequencer import DeploymentSequencer
from storage_deployment.utils import get_deployer_account


@click.command(cls=ConnectedProviderCommand, name="deploy")
@network_option(required=True)
@account_alias_option
@output_option
@registry_option
@autosign_option
@verify_option
def cli(network, account_alias, output, registry, autosign, verify):
    """
    Deploy the storage contracts.

    The topology and contract parameters are read from the environment:
    ENABLE_MARKET (default false), BLOCKS_PER_EPOCH (default 1000000000),
    LIFETIME_MONTH (default 3) and INIT_HASH_RATE (default 1000).

    ENABLE_MARKET=true BLOCKS_PER_EPOCH=500 ape run deploy --network ethereum:local:test
    """
    try:
        config = DeploymentConfig.from_env()
        account = get_deployer_account(account_alias)
        click.secho(
            f"Account: {account.address}\n"
            f"Network: {network.ecosystem.name}:{network.name} (chain id {network.chain_id})\n"
            f"Topology: {config.topology.value}\n"
            f"Blocks per epoch: {config.blocks_per_epoch}\n"
            f"Lifetime (months): {config.lifetime_month}\n"
            f"Initial hash rate: {config.init_hash_rate}",
            fg="green",
        )

        deployer = Deployer(account=account, verify=verify, autosign=autosign)
        deployer.confirm_start()
        sequencer = DeploymentSequencer(deployer=deployer, config=config)
        record = sequencer.run()

        # the contracts are on chain: save their addresses before anything else can fail
        click.echo(format_deployment_record(record))
        output_filepath = write_deployment_record(record, output)
        click.secho(f"(i) Deployment result written to {output_filepath}", fg="green")

        if registry:
            registry_names = {
                contract_name: output_name
                for output_name, contract_name in sequencer.plan.outputs.items()
            }
            registry_filepath = registry_from_deployments(
                deployments=sequencer.deployments,
                output_filepath=registry,
                registry_names=registry_names,
            )
            click.secho(f"(i) Registry written to {registry_filepath}", fg="green")

        deployer.finalize(list(sequencer.deployments.values()))
    except click.Abort:
        raise
    except Exception as e:
        raise click.ClickException(f"Deployment failed: {e}") from e


if __name__ == "__main__":
    cli()
