from enum import Enum
from pathlib import Path

import storage_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(storage_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"

# relative to the working directory the deployment is run from
DEPLOY_RESULT_FILEPATH = Path("deploy") / "localtest.py"

#
# Networks
#

LOCAL_BLOCKCHAIN_ENVIRONMENTS = ["local"]

#
# Environment
#

ENABLE_MARKET_ENVVAR = "ENABLE_MARKET"
BLOCKS_PER_EPOCH_ENVVAR = "BLOCKS_PER_EPOCH"
LIFETIME_MONTH_ENVVAR = "LIFETIME_MONTH"
INIT_HASH_RATE_ENVVAR = "INIT_HASH_RATE"

DEFAULT_ENABLE_MARKET = False
DEFAULT_BLOCKS_PER_EPOCH = 1_000_000_000
DEFAULT_LIFETIME_MONTH = 3
DEFAULT_INIT_HASH_RATE = 1000

#
# Topologies
#


class Topology(Enum):
    WITH_MARKET = "with-market"
    NO_MARKET = "no-market"

    @property
    def params_filepath(self) -> Path:
        return CONSTRUCTOR_PARAMS_DIR / f"{self.value}.yml"


#
# Deployment result
#

BLOCK_NUMBER_KEY = "blockNumber"
ACCOUNT_KEY = "account"

# usable in constructor params as $ZERO_ADDRESS: a disabled contract reference
ZERO_ADDRESS_CONSTANT = "ZERO_ADDRESS"
