import typing
from collections import OrderedDict
from typing import Optional

from ape import chain
from ape.contracts.base import ContractInstance
from eth_utils import to_checksum_address

from storage_deployment.config import DeploymentConfig
from storage_deployment.params import Deployer, DeploymentPlan
from storage_deployment.predict import AddressPredictor, NonceAddressPredictor
from storage_deployment.registry import DeploymentRecord


class DeploymentSequencer:
    """
    Deploys the contracts of a plan in order. Contracts that reference each other
    before they exist are wired with addresses predicted from the deployer's nonce,
    so no other transaction may be sent from the deployer while the sequence runs.
    """

    class PredictionMismatch(Exception):
        """Raised when a contract lands on a different address than predicted."""

    def __init__(
        self,
        deployer: Deployer,
        config: DeploymentConfig,
        predictor: Optional[AddressPredictor] = None,
        plan: Optional[DeploymentPlan] = None,
        chain_manager=None,
    ):
        self.deployer = deployer
        self.config = config
        self.predictor = predictor or NonceAddressPredictor()
        self.plan = plan if plan is not None else DeploymentPlan.from_config(config)
        self.chain = chain_manager or chain
        self.deployments: typing.OrderedDict[str, ContractInstance] = OrderedDict()

    def predict(self) -> None:
        account = self.deployer.get_account()
        addresses = self.plan.addresses
        addresses.deployer = account.address
        predicted = self.predictor.predict_sequence(account, len(self.plan))
        addresses.predict(self.plan.contract_names, predicted)
        for contract_name, address in addresses.predicted.items():
            print(f"(i) {contract_name} predicted at {address}")

    def deploy_all(self) -> None:
        addresses = self.plan.addresses
        if not addresses.is_predicted(self.plan.contract_names):
            raise ValueError("Contract addresses must be predicted before deploying.")
        for entry in self.plan:
            resolved_params = self.plan.resolve(entry.contract_name)
            pending = [
                address
                for name, address in addresses.predicted.items()
                if name not in addresses.confirmed
            ]
            instance = self.deployer.deploy(entry.contract_name, resolved_params, predicted=pending)

            expected = addresses.predicted[entry.contract_name]
            if to_checksum_address(instance.address) != expected:
                raise self.PredictionMismatch(
                    f"{entry.contract_name} was deployed to {instance.address} but "
                    f"{expected} was predicted; was another transaction sent "
                    "from the deployer account?"
                )
            addresses.confirm(entry.contract_name, expected)
            self.deployments[entry.contract_name] = instance

    def record(self) -> DeploymentRecord:
        confirmed = self.plan.addresses.confirmed
        contracts = OrderedDict(
            (output_name, confirmed[contract_name])
            for output_name, contract_name in self.plan.outputs.items()
        )
        return DeploymentRecord(
            contracts=contracts,
            block_number=self.chain.blocks.height,
            account=self.deployer.get_account().address,
        )

    def run(self) -> DeploymentRecord:
        """
        Predicts, deploys and returns the addresses of the deployed contracts.
        Publishing to the explorer is left to `Deployer.finalize` once the result is saved.
        """
        self.predict()
        self.deploy_all()
        return self.record()
