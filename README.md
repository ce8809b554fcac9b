# krew

A library for working with command-line plugins that are described by YAML
manifests kept in a plugin index. It provides:

- data types for plugin manifests and install receipts, with conversion to and
  from plain dictionaries
- structural validation of manifests
- reading manifests and receipts from disk, and storing receipts
- semantic version parsing and comparison
- the directory layout of an installation
- downloading an archive, checking its SHA-256 sum, and unpacking zip and
  tar.gz archives safely
- listing installed plugins from their receipts, and removing an index

## Installation

```
pip install .
```

Install with `pip install .[test]` to get the test dependencies.

## Layout on disk

Everything lives under a base directory. By default this is `~/.krew`.
Set the `KREW_ROOT` environment variable to use a different directory.

```python
from krew.environment import must_get_krew_paths, Paths

paths = must_get_krew_paths()
paths.bin_path()                              # <base>/bin
paths.index_path("default")                   # <base>/index/default
paths.index_plugins_path("default")           # <base>/index/default/plugins
paths.plugin_install_receipt_path("foo")      # <base>/receipts/foo.yaml
paths.plugin_version_install_path("foo", "v1")  # <base>/store/foo/v1
```

`krew.environment.realpath(path)` resolves a symbolic link whose target is an
absolute path. If the target is relative, it raises `ValueError`. Other paths are
returned in normalised form.

## Manifests and receipts

`krew.index` defines these types:

- `Plugin`, `PluginSpec`, `Platform`, `FileOperation`
- `LabelSelector` and `LabelSelectorRequirement`
- `Receipt`, `ReceiptStatus`, `SourceIndex`

`Plugin`, `Platform`, `LabelSelector` and `Receipt` have `from_dict` and
`to_dict` methods. `LabelSelector.matches(labels)` checks a selector against a
mapping such as `{"os": "linux", "arch": "amd64"}`.

`krew.index.default_index()` returns the URI of the default index. The
`KREW_DEFAULT_INDEX_URI` environment variable overrides it.

```python
from krew.scanner import (
    read_plugin_from_file, load_plugin_by_name, load_plugin_list_from_fs,
    read_receipt_from_file,
)

plugin = read_plugin_from_file("plugins/foo.yaml")   # validated
plugins = load_plugin_list_from_fs(paths.index_plugins_path("default"))
```

How the reading functions fail and default:

- A missing file raises `FileNotFoundError`.
- A manifest that fails validation raises `krew.validation.ValidationError`.
- `load_plugin_list_from_fs` logs and skips manifests it cannot read or validate.
- A receipt read without a source index is given the index name `default`.

`krew.receipt` writes and reads receipts:

```python
from krew import receipt

r = receipt.new(plugin, "default", None)
receipt.store(r, paths.plugin_install_receipt_path(plugin.name))
receipt.load(paths.plugin_install_receipt_path(plugin.name))
```

`krew.installed.get_installed_plugin_receipts(receipts_dir)` loads every
`*.yaml` receipt in a directory. `installed_plugins_from_index(receipts_dir, name)`
returns only the receipts that were installed from the named index.

## Validation

`krew.validation.validate_plugin(name, plugin)` raises `ValidationError` in
these cases:

- the API version or kind is wrong
- the name is unsafe or does not match
- the short description is missing or contains a line break
- there are no platforms
- the version is missing or is not a valid semantic version
- a platform entry is malformed

The helpers `validate_platform`, `validate_files`, `validate_selector`,
`is_safe_plugin_name`, `is_supported_api_version` and `is_valid_sha256` can also
be used on their own.

## Versions

Version strings must be semantic versions that start with `v`:

```python
from krew.semver import parse, less

str(parse("v1.2.3-beta.2+foo.bar"))          # "v1.2.3-beta.2+foo.bar"
less(parse("v1.0.0-rc1"), parse("v1.0.0"))   # True
```

`parse` raises `ValueError` on invalid input.

`krew.version.git_commit()` and `git_tag()` return `"unknown"` unless a value
has been stamped in at build time.

## Downloading archives

```python
from krew.download import Downloader, HTTPFetcher, FileFetcher, Sha256Verifier

verifier = Sha256Verifier("<expected hex sha256>")
Downloader(verifier, HTTPFetcher()).get("https://example.com/plugin.tar.gz", "out/")
```

`FileFetcher(path)` reads a local file instead of fetching a URI.

The download fails as follows:

- A checksum mismatch raises `VerificationError`.
- The archive type is detected from its content. Only zip and gzipped tar are
  accepted.
- Entries containing `..` or starting with `/` or `\` are refused with
  `ArchiveError`.

The lower-level functions `download`, `extract_archive`, `extract_zip`,
`extract_targz`, `detect_mime_type` and `suspicious_path` are also available.

## Indexes

In `krew.indexoperations`:

- `delete_index(paths, name)` removes an index directory. It raises
  `FileNotFoundError` when the index does not exist.
- `is_valid_index_name(name)` accepts only letters, digits, `_` and `-`.

## What this package does not do

This package is a library only. It provides no command-line tool, and it does
not do the following:

- install, upgrade or uninstall plugins, or create links to plugin binaries
- choose the platform entry that matches the running OS and architecture
- move extracted files into an install directory
- clone, update, add or list index repositories
- migrate older on-disk layouts