import os
import re
import typing
from typing import Dict, Mapping

from storage_deployment.constants import (
    BLOCKS_PER_EPOCH_ENVVAR,
    DEFAULT_BLOCKS_PER_EPOCH,
    DEFAULT_ENABLE_MARKET,
    DEFAULT_INIT_HASH_RATE,
    DEFAULT_LIFETIME_MONTH,
    ENABLE_MARKET_ENVVAR,
    INIT_HASH_RATE_ENVVAR,
    LIFETIME_MONTH_ENVVAR,
    Topology,
)

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


def parse_bool(value: str) -> bool:
    """Only a case-insensitive 'true' enables a flag."""
    return value.strip().lower() == "true"


def parse_int(value: str) -> typing.Optional[int]:
    """
    Parses the leading integer of a string, ignoring any trailing characters
    (e.g. '500blocks' -> 500). Returns None when there are no leading digits.
    """
    match = _LEADING_INTEGER.match(value)
    if not match:
        return None
    return int(match.group(1))


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if not value:
        return default
    return parse_bool(value)


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if not value:
        return default
    result = parse_int(value)
    if result is None:
        print(f"WARNING: {name}={value!r} is not an integer; using default {default}.")
        return default
    return result


class DeploymentConfig(typing.NamedTuple):
    """Tunable deployment parameters, built once at startup."""

    enable_market: bool = DEFAULT_ENABLE_MARKET
    blocks_per_epoch: int = DEFAULT_BLOCKS_PER_EPOCH
    lifetime_month: int = DEFAULT_LIFETIME_MONTH
    init_hash_rate: int = DEFAULT_INIT_HASH_RATE

    @classmethod
    def from_env(cls, environ: typing.Optional[Mapping[str, str]] = None) -> "DeploymentConfig":
        environ = os.environ if environ is None else environ
        return cls(
            enable_market=_env_bool(environ, ENABLE_MARKET_ENVVAR, DEFAULT_ENABLE_MARKET),
            blocks_per_epoch=_env_int(environ, BLOCKS_PER_EPOCH_ENVVAR, DEFAULT_BLOCKS_PER_EPOCH),
            lifetime_month=_env_int(environ, LIFETIME_MONTH_ENVVAR, DEFAULT_LIFETIME_MONTH),
            init_hash_rate=_env_int(environ, INIT_HASH_RATE_ENVVAR, DEFAULT_INIT_HASH_RATE),
        )

    @property
    def topology(self) -> Topology:
        return Topology.WITH_MARKET if self.enable_market else Topology.NO_MARKET

    def constants(self) -> Dict[str, int]:
        """Exposes the tunables as deployment constants (e.g. $BLOCKS_PER_EPOCH)."""
        return {
            BLOCKS_PER_EPOCH_ENVVAR: self.blocks_per_epoch,
            LIFETIME_MONTH_ENVVAR: self.lifetime_month,
            INIT_HASH_RATE_ENVVAR: self.init_hash_rate,
        }
