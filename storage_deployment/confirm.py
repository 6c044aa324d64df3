from collections import OrderedDict
from typing import Collection

import click
from ape.utils import ZERO_ADDRESS


def _ask(question: str) -> None:
    """Aborts the deployment when the user answers 'n'."""
    answer = input(f"{question} Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        raise click.Abort()


def _continue() -> None:
    """Asks the user to continue."""
    _ask("Continue")


def _confirm_arguments(
    contract_name: str, resolved_params: OrderedDict, predicted: Collection[str] = ()
) -> None:
    """
    Asks the user to confirm the resolved constructor arguments of a single contract.
    Addresses in `predicted` belong to contracts that are not deployed yet.
    """
    if not resolved_params:
        print(f"\n(i) No constructor parameters for {contract_name}")
        _ask(f"Deploy {contract_name}")
        return

    print(f"\nConstructor parameters for {contract_name}")
    zero_addresses = list()
    for name, value in resolved_params.items():
        if value == ZERO_ADDRESS:
            zero_addresses.append(name)
            print(f"\t{name}={value} (disabled)")
        elif value in predicted:
            print(f"\t{name}={value} (predicted)")
        else:
            print(f"\t{name}={value}")

    _ask(f"Deploy {contract_name}")
    if zero_addresses:
        _ask(f"Zero address passed for {', '.join(zero_addresses)}; Continue")
