from types import SimpleNamespace

import pytest
from eth_utils import to_checksum_address

from storage_deployment.config import DeploymentConfig
from storage_deployment.params import Deployer
from storage_deployment.predict import AddressPredictor, compute_create_address

DEPLOYER_ADDRESS = to_checksum_address("0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0")
CHAIN_ID = 1337


class FakeContract:
    def __init__(self, address, contract_name, sender, block_number):
        self.address = address
        self.contract_type = SimpleNamespace(name=contract_name)
        self.receipt = SimpleNamespace(
            chain_id=CHAIN_ID,
            txn_hash=f"0x{block_number:064x}",
            block_number=block_number,
            transaction=SimpleNamespace(sender=sender),
        )


class FakeAccount:
    """Creates contracts at their CREATE addresses, one block per deployment."""

    def __init__(self, address=DEPLOYER_ADDRESS, nonce=0, fail_on=None):
        self.address = address
        self.nonce = nonce
        self.fail_on = fail_on
        self.deployments = list()

    def deploy(self, container, *args, **kwargs):
        if container == self.fail_on:
            raise RuntimeError(f"{container} reverted")
        address = compute_create_address(self.address, self.nonce)
        self.nonce += 1
        self.deployments.append((container, args))
        return FakeContract(address, container, self.address, len(self.deployments))


class FakeChain:
    def __init__(self, account, start_height=100):
        self.account = account
        self.start_height = start_height

    @property
    def blocks(self):
        return SimpleNamespace(height=self.start_height + len(self.account.deployments))


class FixedAddressPredictor(AddressPredictor):
    """Hands out preset addresses regardless of the nonce."""

    def __init__(self, addresses):
        self.addresses = addresses

    def predict(self, deployer, nonce):
        return self.addresses[nonce]


@pytest.fixture
def account():
    return FakeAccount()


@pytest.fixture
def fake_chain(account):
    return FakeChain(account)


@pytest.fixture
def deployer(account):
    # containers are looked up by name
    return Deployer(account=account, autosign=True, get_container=lambda name: name)


@pytest.fixture
def no_market_config():
    return DeploymentConfig.from_env({})


@pytest.fixture
def market_config():
    return DeploymentConfig.from_env({"ENABLE_MARKET": "true"})
