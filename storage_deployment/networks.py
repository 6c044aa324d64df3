from ape import networks

from storage_deployment.constants import LOCAL_BLOCKCHAIN_ENVIRONMENTS


def is_local_network() -> bool:
    """True when connected to a local development chain."""
    return networks.provider.network.name in LOCAL_BLOCKCHAIN_ENVIRONMENTS
