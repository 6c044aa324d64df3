import pytest
from eth_utils import is_checksum_address

from storage_deployment.predict import NonceAddressPredictor, compute_create_address
from tests.conftest import DEPLOYER_ADDRESS, FakeAccount

# contract addresses created by 0x6ac7...dbf0 at nonces 0 to 3
KNOWN_CREATE_ADDRESSES = [
    "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d",
    "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8",
    "0xf778b86fa74e846c4f0a1fbd1335fe81c00a0c91",
    "0xfffd933a0bc612844eaf0c6fe3e5b8e9b6c1d19c",
]


@pytest.mark.parametrize("nonce", range(len(KNOWN_CREATE_ADDRESSES)))
def test_compute_create_address(nonce):
    address = compute_create_address(DEPLOYER_ADDRESS, nonce)
    assert address.lower() == KNOWN_CREATE_ADDRESSES[nonce]
    assert is_checksum_address(address)


def test_compute_create_address_ignores_deployer_case():
    lower = compute_create_address(DEPLOYER_ADDRESS.lower(), 1)
    assert lower == compute_create_address(DEPLOYER_ADDRESS, 1)


def test_compute_create_address_rejects_bad_input():
    with pytest.raises(ValueError):
        compute_create_address(DEPLOYER_ADDRESS, -1)
    with pytest.raises(ValueError):
        compute_create_address("0x1234", 0)


def test_predict_sequence_starts_at_current_nonce():
    account = FakeAccount(nonce=2)
    predicted = NonceAddressPredictor().predict_sequence(account, 2)
    assert [a.lower() for a in predicted] == KNOWN_CREATE_ADDRESSES[2:4]
    # predicting does not consume the nonce
    assert account.nonce == 2


def test_predicted_addresses_match_deployments():
    account = FakeAccount(nonce=5)
    predicted = NonceAddressPredictor().predict_sequence(account, 3)
    deployed = [account.deploy(name).address for name in ("A", "B", "C")]
    assert predicted == deployed
