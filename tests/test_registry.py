import json
from collections import OrderedDict

import pytest

from storage_deployment.predict import compute_create_address
from storage_deployment.registry import (
    DeploymentRecord,
    format_deployment_record,
    read_deployment_record,
    registry_from_deployments,
    write_deployment_record,
)
from tests.conftest import CHAIN_ID, DEPLOYER_ADDRESS, FakeAccount

FLOW = compute_create_address(DEPLOYER_ADDRESS, 0)
MINE = compute_create_address(DEPLOYER_ADDRESS, 1)


@pytest.fixture
def record():
    return DeploymentRecord(
        contracts=OrderedDict([("flow", FLOW), ("PoraMine", MINE)]),
        block_number=12,
        account=DEPLOYER_ADDRESS,
    )


def test_format_deployment_record(record):
    assert format_deployment_record(record) == (
        f"flow = '{FLOW}'\n"
        f"PoraMine = '{MINE}'\n"
        "blockNumber = 12\n"
        f"account = '{DEPLOYER_ADDRESS}'"
    )


def test_write_creates_directory_and_overwrites(tmp_path, record):
    filepath = tmp_path / "deploy" / "localtest.py"
    write_deployment_record(record, filepath)
    first = filepath.read_text()

    later = record._replace(block_number=99)
    write_deployment_record(later, filepath)
    content = filepath.read_text()
    assert content == format_deployment_record(later)
    assert content.count("blockNumber") == 1
    assert first != content


def test_read_deployment_record(tmp_path, record):
    filepath = write_deployment_record(record, tmp_path / "localtest.py")
    assert read_deployment_record(filepath) == record


def test_read_malformed_record(tmp_path):
    filepath = tmp_path / "localtest.py"
    filepath.write_text("flow = 0xabc\n")
    with pytest.raises(ValueError, match="Malformed"):
        read_deployment_record(filepath)

    filepath.write_text(f"flow = '{FLOW}'\n")
    with pytest.raises(ValueError, match="incomplete"):
        read_deployment_record(filepath)


def _deploy(names):
    account = FakeAccount()
    return OrderedDict((name, account.deploy(name)) for name in names)


def test_registry_from_deployments(tmp_path):
    deployments = _deploy(["AddressBook", "Flow"])
    filepath = registry_from_deployments(
        deployments=deployments,
        output_filepath=tmp_path / "registry.json",
        registry_names={"Flow": "flow"},
    )
    data = json.loads(filepath.read_text())
    assert list(data) == [str(CHAIN_ID)]
    assert sorted(data[str(CHAIN_ID)]) == ["AddressBook", "flow"]
    flow = data[str(CHAIN_ID)]["flow"]
    assert flow["address"] == deployments["Flow"].address
    assert flow["block_number"] == 2
    assert flow["deployer"] == DEPLOYER_ADDRESS


def test_registry_keeps_existing_chain_data(tmp_path):
    filepath = tmp_path / "registry.json"
    filepath.write_text(json.dumps({"1": {"flow": {"address": FLOW}}}))
    registry_from_deployments(deployments=_deploy(["Flow"]), output_filepath=filepath)
    data = json.loads(filepath.read_text())
    assert sorted(data) == ["1", str(CHAIN_ID)]


def test_registry_refuses_to_overwrite_chain(tmp_path):
    filepath = tmp_path / "registry.json"
    existing = {str(CHAIN_ID): {"flow": {"address": FLOW}}}
    filepath.write_text(json.dumps(existing))
    written = registry_from_deployments(deployments=_deploy(["Flow"]), output_filepath=filepath)
    assert written == tmp_path / "registry.unmerged.json"
    assert json.loads(filepath.read_text()) == existing


@pytest.mark.parametrize(
    "content",
    [
        f"flow = '{FLOW}'\nblockNumber = '12'\naccount = '{DEPLOYER_ADDRESS}'",
        f"flow = 12\nblockNumber = 12\naccount = '{DEPLOYER_ADDRESS}'",
        f"flow = '{FLOW}'\nblockNumber = 12\naccount = 12",
    ],
)
def test_read_record_with_misquoted_values(tmp_path, content):
    filepath = tmp_path / "localtest.py"
    filepath.write_text(content)
    with pytest.raises(ValueError, match="Malformed"):
        read_deployment_record(filepath)
