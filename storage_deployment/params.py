import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable, Collection, Dict, Iterator, List, Optional

from ape.api import AccountAPI
from ape.contracts.base import ContractContainer, ContractInstance
from ape.utils import ZERO_ADDRESS
from eth_typing import ChecksumAddress

from storage_deployment.config import DeploymentConfig
from storage_deployment.confirm import _confirm_arguments, _continue
from storage_deployment.constants import (
    ACCOUNT_KEY,
    BLOCK_NUMBER_KEY,
    ZERO_ADDRESS_CONSTANT,
    Topology,
)
from storage_deployment.utils import (
    _load_yaml,
    check_etherscan_plugin,
    get_contract_container,
    verify_contracts,
)

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_OUTPUT_KEY = "output"
RESERVED_OUTPUT_NAMES = (BLOCK_NUMBER_KEY, ACCOUNT_KEY)


class ContractAddresses:
    """
    Addresses of the contracts in a plan: predicted before the sequence starts,
    confirmed one by one as deployments land on chain.
    """

    def __init__(self):
        self.deployer: Optional[ChecksumAddress] = None
        self.predicted: typing.OrderedDict[str, ChecksumAddress] = OrderedDict()
        self.confirmed: typing.OrderedDict[str, ChecksumAddress] = OrderedDict()

    def predict(self, contract_names: List[str], addresses: List[ChecksumAddress]) -> None:
        if len(contract_names) != len(addresses):
            raise ValueError(
                f"Expected {len(contract_names)} predicted addresses, got {len(addresses)}"
            )
        self.predicted = OrderedDict(zip(contract_names, addresses))

    def confirm(self, contract_name: str, address: ChecksumAddress) -> None:
        self.confirmed[contract_name] = address

    def lookup(self, contract_name: str) -> ChecksumAddress:
        if contract_name in self.confirmed:
            return self.confirmed[contract_name]
        if contract_name in self.predicted:
            return self.predicted[contract_name]
        raise ConstructorParameters.Invalid(
            f"Address of {contract_name} is neither deployed nor predicted."
        )

    def is_predicted(self, contract_names: List[str]) -> bool:
        return list(self.predicted) == list(contract_names)


class VariableContext:
    def __init__(
        self,
        contract_names: List[str],
        contract_name: str,
        addresses: ContractAddresses,
        constants: typing.Dict[str, Any] = None,
    ):
        self.contract_names = contract_names or list()
        self.contract_name = contract_name
        self.addresses = addresses
        self.constants = constants or dict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        return isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.addresses = context.addresses

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        return self.addresses.deployer or ZERO_ADDRESS


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise ConstructorParameters.Invalid(
                f"Constant '{constant_name}' used by {context.contract_name} is not defined."
            )

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


class ContractName(Variable):
    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise ConstructorParameters.Invalid(
                f"Contract {contract_name} referenced by {context.contract_name} "
                "is not part of the deployment."
            )
        self.contract_name = contract_name
        self.addresses = context.addresses

    def resolve(self) -> Any:
        """Resolves to the deployed address, or the predicted one if not deployed yet."""
        return self.addresses.lookup(self.contract_name)


def _resolve_param(value: Any) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v) for v in value]

    if isinstance(value, Variable):
        return value.resolve()

    return value  # literally a value


def _resolve_params(parameters: OrderedDict) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value)
    return resolved_parameters


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractName(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: Dict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)
    return processed_parameters


def _get_contract_entries(config: typing.Dict) -> List[typing.Tuple[str, Dict]]:
    """Returns the (contract name, contract data) pairs of a params file, in order."""
    contract_entries = list()
    for contract_info in config.get("contracts") or list():
        if isinstance(contract_info, str):
            contract_entries.append((contract_info, dict()))
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_entries.append((contract_name, contract_info[contract_name] or dict()))
        else:
            raise ValueError("Malformed constructor parameters YAML.")
    return contract_entries


class ConstructorParameters:
    """Represents the constructor parameters for a set of contracts."""

    class Invalid(Exception):
        """Raised when the constructor parameters are invalid"""

    def __init__(self, parameters: OrderedDict):
        self.parameters = parameters

    def resolve(self, contract_name: str) -> OrderedDict:
        """Resolves the constructor parameters for a single contract."""
        return _resolve_params(self.parameters[contract_name])


class PlanEntry(typing.NamedTuple):
    contract_name: str
    output_name: Optional[str]


class DeploymentPlan:
    """The ordered contracts of a topology and their constructor parameters."""

    def __init__(
        self,
        topology: Topology,
        entries: List[PlanEntry],
        constructor_parameters: ConstructorParameters,
        addresses: ContractAddresses,
        output_order: Optional[List[str]] = None,
    ):
        self.topology = topology
        self.entries = entries
        self.constructor_parameters = constructor_parameters
        self.addresses = addresses

        outputs = {entry.output_name: entry.contract_name for entry in entries if entry.output_name}
        output_order = output_order or list(outputs)
        if sorted(output_order) != sorted(outputs):
            raise ConstructorParameters.Invalid(
                f"Output order {output_order} does not match the contract outputs {list(outputs)}."
            )
        # output name -> contract name, in the order results are reported
        self.outputs = OrderedDict((name, outputs[name]) for name in output_order)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def contract_names(self) -> List[str]:
        return [entry.contract_name for entry in self.entries]

    def resolve(self, contract_name: str) -> OrderedDict:
        return self.constructor_parameters.resolve(contract_name)

    @classmethod
    def from_config(cls, deployment_config: DeploymentConfig) -> "DeploymentPlan":
        topology = deployment_config.topology
        return cls.from_yaml(
            filepath=topology.params_filepath,
            topology=topology,
            constants=deployment_config.constants(),
        )

    @classmethod
    def from_yaml(
        cls, filepath: Path, topology: Topology, constants: Optional[Dict[str, Any]] = None
    ) -> "DeploymentPlan":
        print(f"Processing {topology.value} constructor parameters from {filepath}...")
        return cls.from_dict(_load_yaml(filepath), topology=topology, constants=constants)

    @classmethod
    def from_dict(
        cls, config: typing.Dict, topology: Topology, constants: Optional[Dict[str, Any]] = None
    ) -> "DeploymentPlan":
        deployment = config.get("deployment") or dict()
        if deployment.get("topology") != topology.value:
            raise ValueError(
                f"Constructor parameters are for topology '{deployment.get('topology')}', "
                f"expected '{topology.value}'."
            )

        contract_entries = _get_contract_entries(config)
        if not contract_entries:
            raise ValueError("Constructor parameters file missing 'contracts' field.")
        contract_names = [name for name, _ in contract_entries]
        if len(set(contract_names)) != len(contract_names):
            raise ConstructorParameters.Invalid("Each contract can only be deployed once.")

        all_constants = {ZERO_ADDRESS_CONSTANT: ZERO_ADDRESS}
        all_constants.update(config.get("constants") or dict())
        all_constants.update(constants or dict())

        addresses = ContractAddresses()
        entries, parameters, output_names = list(), OrderedDict(), set()
        for contract_name, contract_data in contract_entries:
            output_name = contract_data.get(CONTRACT_OUTPUT_KEY)
            if output_name in RESERVED_OUTPUT_NAMES or output_name in output_names:
                raise ConstructorParameters.Invalid(
                    f"Output name '{output_name}' of {contract_name} is already in use."
                )
            if output_name:
                output_names.add(output_name)

            context = VariableContext(
                contract_names=contract_names,
                contract_name=contract_name,
                addresses=addresses,
                constants=all_constants,
            )
            raw_values = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or dict()
            parameters[contract_name] = _process_raw_values(raw_values, context)
            entries.append(PlanEntry(contract_name=contract_name, output_name=output_name))

        return cls(
            topology=topology,
            entries=entries,
            constructor_parameters=ConstructorParameters(parameters),
            addresses=addresses,
            output_order=deployment.get("outputs"),
        )


class Deployer:
    """
    Represents an ape account plus validated/annotated contract deployment.
    Submits one creation transaction at a time and waits for each to confirm.
    """

    def __init__(
        self,
        account: AccountAPI,
        verify: bool = False,
        autosign: bool = False,
        get_container: Callable[[str], ContractContainer] = get_contract_container,
    ):
        self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
            if hasattr(account, "set_autosign"):
                account.set_autosign(autosign)
        self._autosign = autosign
        self.verify = verify
        self._get_container = get_container
        if verify:
            check_etherscan_plugin()

    def get_account(self) -> AccountAPI:
        """Returns the deployer account."""
        return self._account

    def deploy(
        self,
        contract_name: str,
        resolved_params: OrderedDict,
        predicted: Collection[str] = (),
    ) -> ContractInstance:
        container = self._get_container(contract_name)
        if self._autosign:
            print(f"\nDeploying {contract_name}...")
        else:
            _confirm_arguments(contract_name, resolved_params, predicted=predicted)

        instance = self._account.deploy(container, *resolved_params.values())
        print(f"(i) {contract_name} deployed to {instance.address}")
        return instance

    def confirm_start(self) -> None:
        if not self._autosign:
            _continue()

    def finalize(self, deployments: List[ContractInstance]) -> None:
        """Optionally publishes the deployed contracts to the block explorer."""
        if self.verify:
            verify_contracts(contracts=deployments)
