import io
import os

import pytest
import yaml

from krew import constants
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
from krew.scanner import (
    load_plugin_by_name,
    load_plugin_list_from_fs,
    read_plugin,
    read_plugin_from_file,
    read_receipt_from_file,
)
from krew.validation import ValidationError

SHA = "deadbeef" * 8


def _plugin(name, os_label="macos", api_version=constants.CURRENT_API_VERSION):
    return Plugin(
        api_version=api_version,
        kind=constants.PLUGIN_KIND,
        name=name,
        spec=PluginSpec(
            version="v1.0.0",
            short_description="a test plugin",
            platforms=[
                Platform(
                    uri="http://example.com/",
                    sha256=SHA,
                    selector=LabelSelector(match_labels={"os": os_label}),
                    bin="kubectl-" + name,
                    files=[FileOperation(from_="*", to=".")],
                )
            ],
        ),
    )


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))


@pytest.fixture
def plugins_dir(tmp_path):
    plugins = tmp_path / "testindex" / "plugins"
    _write(plugins / "foo.yaml", _plugin("foo").to_dict())
    _write(plugins / "bar.yaml", _plugin("bar", os_label="linux").to_dict())
    _write(plugins / "broken.yaml", _plugin("broken", api_version="core/v1").to_dict())
    (plugins / "notes.txt").write_text("not a manifest")
    (plugins / "sub.yaml").mkdir()
    return plugins


def test_read_plugin_file(plugins_dir):
    got = read_plugin_from_file(str(plugins_dir / "foo.yaml"))
    assert got.name == "foo"
    assert got.kind == "Plugin"
    selector = got.spec.platforms[0].selector
    assert selector.matches({"os": "macos"}) is True
    assert selector.matches({}) is False


def test_read_plugin_file_invalid(plugins_dir):
    with pytest.raises(ValidationError, match="validation error"):
        read_plugin_from_file(str(plugins_dir / "broken.yaml"))


def test_read_plugin_file_preserves_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_plugin_from_file(str(tmp_path / "does-not-exist.yaml"))


def test_read_plugin_file_bad_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("key: [unclosed")
    with pytest.raises(ValueError, match="failed to parse yaml file"):
        read_plugin_from_file(str(path))


def test_read_plugin_from_stream():
    stream = io.BytesIO(yaml.safe_dump(_plugin("foo").to_dict()).encode())
    plugin = read_plugin(stream)
    assert plugin.name == "foo"
    assert plugin.spec.version == "v1.0.0"
    assert stream.closed


def test_read_plugin_from_stream_invalid():
    stream = io.BytesIO(yaml.safe_dump(_plugin("foo", api_version="x/v1").to_dict()).encode())
    with pytest.raises(ValidationError):
        read_plugin(stream)


@pytest.mark.parametrize(
    "status, want",
    [
        (ReceiptStatus(source=SourceIndex(name="foo")), "foo"),
        (ReceiptStatus(), constants.DEFAULT_INDEX_NAME),
    ],
)
def test_read_receipt_from_file(tmp_path, status, want):
    path = tmp_path / ("plugin" + constants.MANIFEST_EXTENSION)
    _write(path, Receipt(plugin=_plugin("test-plugin"), status=status).to_dict())
    got = read_receipt_from_file(str(path))
    assert got.status == ReceiptStatus(source=SourceIndex(name=want))
    assert got.plugin.name == "test-plugin"


def test_read_receipt_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_receipt_from_file(str(tmp_path / "missing.yaml"))


def test_load_plugin_list_from_fs(plugins_dir):
    got = load_plugin_list_from_fs(str(plugins_dir))
    assert sorted(p.name for p in got) == ["bar", "foo"]


def test_load_plugin_list_through_symlink(plugins_dir, tmp_path):
    link = tmp_path / "link"
    os.symlink(plugins_dir, link)
    assert len(load_plugin_list_from_fs(str(link))) == 2


def test_load_plugin_list_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_plugin_list_from_fs(str(tmp_path / "nope"))


def test_load_single_plugin_by_name(plugins_dir):
    assert load_plugin_by_name(str(plugins_dir), "foo").name == "foo"


@pytest.mark.parametrize("name", ["not", "wrongname"])
def test_load_plugin_by_name_not_found(tmp_path, name):
    with pytest.raises(FileNotFoundError):
        load_plugin_by_name(str(tmp_path / "plugins"), name)