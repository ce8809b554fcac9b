import os
import stat
from datetime import datetime, timezone

import pytest

from krew import constants, receipt, scanner
from krew.index import (
    FileOperation,
    LabelSelector,
    Platform,
    Plugin,
    PluginSpec,
    Receipt,
    ReceiptStatus,
    SourceIndex,
)


def _plugin(name):
    return Plugin(
        api_version=constants.CURRENT_API_VERSION,
        kind=constants.PLUGIN_KIND,
        name=name,
        spec=PluginSpec(
            version="v1.0.0-test.1",
            short_description="in-memory test plugin object",
            platforms=[
                Platform(
                    uri="http://example.com/",
                    sha256="deadbeef" * 8,
                    selector=LabelSelector(match_labels={"os": "linux", "arch": "amd64"}),
                    bin="kubectl-" + name,
                    files=[FileOperation(from_="./*.sh", to=".")],
                )
            ],
        ),
    )


def _receipt(plugin):
    return Receipt(
        plugin=plugin,
        status=ReceiptStatus(source=SourceIndex(name=constants.DEFAULT_INDEX_NAME)),
    )


def test_store(tmp_path):
    test_receipt = _receipt(_plugin("some-plugin"))
    dest = str(tmp_path / "some-plugin.yaml")
    receipt.store(test_receipt, dest)

    assert scanner.read_receipt_from_file(dest) == test_receipt
    assert stat.S_IMODE(os.stat(dest).st_mode) & 0o644 == 0o644


def test_store_with_timestamp_round_trips(tmp_path):
    ts = datetime(2021, 6, 1, 12, 30, 15, tzinfo=timezone.utc)
    test_receipt = receipt.new(_plugin("foo"), "custom", ts)
    dest = str(tmp_path / "foo.yaml")
    receipt.store(test_receipt, dest)
    got = receipt.load(dest)
    assert got.plugin.creation_timestamp == ts
    assert got.status.source.name == "custom"


def test_load(tmp_path):
    test_receipt = _receipt(_plugin("foo"))
    receipt.store(test_receipt, str(tmp_path / "foo.yaml"))
    assert receipt.load(str(tmp_path / "foo.yaml")) == test_receipt


def test_load_preserves_not_exists_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        receipt.load(str(tmp_path / "non-existing.yaml"))


def test_new():
    timestamp = datetime.now(timezone.utc)
    plugin = _plugin("foo")
    want = _receipt(_plugin("foo"))
    want.plugin.creation_timestamp = timestamp

    got = receipt.new(plugin, constants.DEFAULT_INDEX_NAME, timestamp)
    assert got == want
    assert plugin.creation_timestamp is None