import json
import re
import typing
from collections import OrderedDict, defaultdict
from pathlib import Path
from typing import Dict, List, NamedTuple

from ape.contracts import ContractInstance
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from storage_deployment.constants import ACCOUNT_KEY, BLOCK_NUMBER_KEY

ChainId = int
ContractName = str

STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}

_RECORD_LINE = re.compile(r"^(?P<name>\w+) = (?:'(?P<address>[^']*)'|(?P<number>\d+))$")


class DeploymentRecord(NamedTuple):
    """The deployed contract addresses of a single run, keyed by their output names."""

    contracts: typing.OrderedDict[ContractName, ChecksumAddress]
    block_number: int
    account: ChecksumAddress

    def items(self) -> List[typing.Tuple[str, typing.Union[str, int]]]:
        return [
            *self.contracts.items(),
            (BLOCK_NUMBER_KEY, self.block_number),
            (ACCOUNT_KEY, self.account),
        ]


def format_deployment_record(record: DeploymentRecord) -> str:
    """Renders a record as `name = 'value'` lines; the block number is unquoted."""
    lines = list()
    for name, value in record.items():
        if isinstance(value, int):
            lines.append(f"{name} = {value}")
        else:
            lines.append(f"{name} = '{value}'")
    return "\n".join(lines)


def write_deployment_record(record: DeploymentRecord, filepath: Path) -> Path:
    """Writes (and overwrites) the deployment record, creating the parent directory."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        file.write(format_deployment_record(record))
    return filepath


def read_deployment_record(filepath: Path) -> DeploymentRecord:
    contracts = OrderedDict()
    block_number, account = None, None
    with open(filepath, "r") as file:
        for line in file.read().splitlines():
            if not line.strip():
                continue
            match = _RECORD_LINE.match(line.strip())
            if not match:
                raise ValueError(f"Malformed deployment record line in {filepath}: {line!r}")
            name = match.group("name")
            # only the block number is unquoted
            value = match.group("number" if name == BLOCK_NUMBER_KEY else "address")
            if value is None:
                raise ValueError(f"Malformed deployment record line in {filepath}: {line!r}")
            if name == BLOCK_NUMBER_KEY:
                block_number = int(value)
            elif name == ACCOUNT_KEY:
                account = value
            else:
                contracts[name] = value

    if block_number is None or account is None:
        raise ValueError(f"Deployment record {filepath} is incomplete.")
    return DeploymentRecord(contracts=contracts, block_number=block_number, account=account)


class RegistryEntry(NamedTuple):
    """Represents a single deployed contract in a JSON registry."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress
    tx_hash: str
    block_number: int
    deployer: str


def _get_entry(contract_instance: ContractInstance, name: ContractName) -> RegistryEntry:
    receipt = contract_instance.receipt
    return RegistryEntry(
        chain_id=receipt.chain_id,
        name=name,
        address=to_checksum_address(contract_instance.address),
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        deployer=receipt.transaction.sender,
    )


def write_registry(entries: List[RegistryEntry], filepath: Path) -> Path:
    """
    Writes registry entries grouped by chain id. An existing registry is extended
    with new chain ids; a clash is written next to it as *.unmerged.json instead.
    """
    if not entries:
        print("No entries provided.")
        return filepath

    entries = sorted(entries, key=lambda entry: (str(entry.chain_id), entry.name))
    data = defaultdict(dict)
    for entry in entries:
        data[str(entry.chain_id)][entry.name] = {
            "address": entry.address,
            "tx_hash": entry.tx_hash,
            "block_number": int(entry.block_number),
            "deployer": entry.deployer,
        }

    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.exists():
        with open(filepath, "r") as file:
            existing_data = json.load(file)
        if any(chain_id in existing_data for chain_id in data):
            filepath = filepath.with_suffix(".unmerged.json")
            print(
                "Cannot merge registries with overlapping chain IDs.\n"
                f"Writing to {filepath} to avoid overwriting existing data."
            )
        else:
            print(f"Updating existing registry at {filepath}.")
            existing_data.update(data)
            data = existing_data
    else:
        print(f"Creating new registry at {filepath}.")

    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)
    return filepath


def registry_from_deployments(
    deployments: Dict[ContractName, ContractInstance],
    output_filepath: Path,
    registry_names: typing.Optional[Dict[ContractName, ContractName]] = None,
) -> Path:
    """Creates a JSON registry from the deployed contracts, optionally renaming them."""
    registry_names = registry_names or dict()
    entries = [
        _get_entry(instance, registry_names.get(contract_name, contract_name))
        for contract_name, instance in deployments.items()
    ]
    return write_registry(entries=entries, filepath=output_filepath)
