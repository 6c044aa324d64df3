from abc import ABC, abstractmethod
from typing import List

import rlp
from ape.api import AccountAPI
from eth_typing import ChecksumAddress
from eth_utils import is_address, keccak, to_canonical_address, to_checksum_address


def compute_create_address(deployer: str, nonce: int) -> ChecksumAddress:
    """
    Returns the address of the contract created by `deployer` at `nonce`:
    the last 20 bytes of keccak256(rlp([deployer, nonce])).
    """
    if not is_address(deployer):
        raise ValueError(f"Invalid deployer address '{deployer}'")
    if nonce < 0:
        raise ValueError(f"Nonce must be non-negative, got {nonce}")
    encoded = rlp.encode([to_canonical_address(deployer), nonce])
    return to_checksum_address(keccak(encoded)[12:])


class AddressPredictor(ABC):
    """Predicts the addresses of contracts not yet created by an account."""

    @abstractmethod
    def predict(self, deployer: str, nonce: int) -> ChecksumAddress:
        raise NotImplementedError

    def predict_sequence(self, account: AccountAPI, count: int) -> List[ChecksumAddress]:
        """
        Predicts the addresses of the next `count` contracts created by `account`.
        Only valid while the account sends no other transaction in between.
        """
        nonce = account.nonce
        return [self.predict(account.address, nonce + offset) for offset in range(count)]


class NonceAddressPredictor(AddressPredictor):
    def predict(self, deployer: str, nonce: int) -> ChecksumAddress:
        return compute_create_address(deployer, nonce)
