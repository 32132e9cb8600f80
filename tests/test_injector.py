"""Tests for adding modules to the repository and injecting them into the mirror."""

from __future__ import annotations

import builtins
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from mini_inject.domain.errors import (
    ConfigurationError,
    CopyError,
    MissingParameterError,
    PermissionError,
    ReadError,
)
from mini_inject.domain.models import InjectConfig
from mini_inject.domain.record_utils import format_record
from mini_inject.services.injector import Injector
from tests.index_helpers import ALPHA, ZULU, body_of, read_index

BETA = format_record("Beta", "B/BB/BBB/Beta-1.0.tar.gz", "1.0")


def _add_beta(injector: Injector, tarball: Path) -> Injector:
    return injector.add(module="Beta", authorid="bbb", version="1.0", file=str(tarball))


def test_add_missing_version_names_it(injector: Injector, tarball: Path) -> None:
    with pytest.raises(MissingParameterError) as excinfo:
        injector.add(module="Beta", authorid="BBB", file=str(tarball))
    assert excinfo.value.parameters == ["version"]
    assert "version" in str(excinfo.value)


def test_add_lists_every_missing_parameter(injector: Injector) -> None:
    with pytest.raises(MissingParameterError) as excinfo:
        injector.add(module="Beta")
    assert excinfo.value.parameters == ["authorid", "version", "file"]


def test_add_without_repository_is_a_configuration_error(tmp_path: Path, tarball: Path) -> None:
    injector = Injector(config=InjectConfig(local=str(tmp_path), remote="http://example"))
    with pytest.raises(ConfigurationError):
        _add_beta(injector, tarball)


def test_add_without_config_is_a_configuration_error(tarball: Path) -> None:
    with pytest.raises(ConfigurationError):
        _add_beta(Injector(), tarball)


def test_add_unreadable_file_is_a_permission_error(injector: Injector, tmp_path: Path) -> None:
    with pytest.raises(PermissionError) as excinfo:
        injector.add(module="Beta", authorid="BBB", version="1.0", file=str(tmp_path / "missing.tar.gz"))
    assert isinstance(excinfo.value, builtins.PermissionError)


def test_add_unwritable_repository_is_a_permission_error(injector: Injector, tarball: Path) -> None:
    with patch("mini_inject.services.injector.os.access", return_value=False):
        with pytest.raises(PermissionError):
            _add_beta(injector, tarball)


def test_add_copies_file_and_records_it(injector: Injector, tarball: Path, repository_dir: Path) -> None:
    assert _add_beta(injector, tarball) is injector

    copied = repository_dir / "authors" / "id" / "B" / "BB" / "BBB" / "Beta-1.0.tar.gz"
    assert copied.read_bytes() == tarball.read_bytes()
    assert copied.stat().st_mode & 0o777 == 0o644
    assert injector.modulelist == [BETA]
    # nothing is persisted until writelist
    assert not (repository_dir / "modulelist").exists()


def test_add_twice_records_twice(injector: Injector, tarball: Path) -> None:
    _add_beta(injector, tarball)
    _add_beta(injector, tarball)
    assert injector.modulelist == [BETA, BETA]


def test_add_copy_failure_is_a_copy_error(injector: Injector, tarball: Path) -> None:
    with patch("mini_inject.services.injector.shutil.copy2", side_effect=OSError(28, "No space left on device")):
        with pytest.raises(CopyError) as excinfo:
            _add_beta(injector, tarball)
    assert isinstance(excinfo.value.cause, OSError)
    assert "No space left on device" in str(excinfo.value)


def test_writelist_then_readlist(injector: Injector, tarball: Path, config: InjectConfig) -> None:
    _add_beta(injector, tarball).writelist()

    fresh = Injector(config=config).readlist()
    assert fresh.modulelist == [BETA]


def test_add_appends_to_existing_list(injector: Injector, tarball: Path, config: InjectConfig) -> None:
    _add_beta(injector, tarball).writelist()

    other = Injector(config=config)
    other.add(module="Gamma", authorid="ggg", version="2.0", file=str(tarball)).writelist()

    assert Injector(config=config).readlist().modulelist == [
        BETA,
        format_record("Gamma", "G/GG/GGG/Beta-1.0.tar.gz", "2.0"),
    ]


def test_inject_copies_files_and_updates_index(
    injector: Injector, tarball: Path, local_dir: Path, config: InjectConfig
) -> None:
    _add_beta(injector, tarball).writelist()

    Injector(config=config).inject(verbose=True)

    author_dir = local_dir / "authors" / "id" / "B" / "BB" / "BBB"
    assert (author_dir / "Beta-1.0.tar.gz").read_bytes() == tarball.read_bytes()
    assert (author_dir / "CHECKSUMS").exists()
    assert author_dir.stat().st_mode & 0o777 == 0o755
    assert (author_dir / "CHECKSUMS").stat().st_mode & 0o777 == 0o644

    body = body_of(read_index(local_dir / "modules" / "02packages.details.txt.gz"))
    assert body == [ALPHA, BETA, ZULU]


def test_inject_updates_each_touched_directory_once(
    config: InjectConfig, tarball: Path, local_dir: Path
) -> None:
    updater = MagicMock()
    updater.update_dir.side_effect = lambda directory: (directory / "CHECKSUMS").write_text("")
    injector = Injector(config=config, manifest_updater=updater)
    _add_beta(injector, tarball)
    _add_beta(injector, tarball)
    injector.add(module="Other", authorid="ccc", version="1.0", file=str(tarball))

    injector.inject()

    updated = [call.args[0] for call in updater.update_dir.call_args_list]
    assert updated == [
        local_dir / "authors" / "id" / "B" / "BB" / "BBB",
        local_dir / "authors" / "id" / "C" / "CC" / "CCC",
    ]


def test_inject_twice_does_not_duplicate_index_lines(
    injector: Injector, tarball: Path, local_dir: Path, config: InjectConfig
) -> None:
    _add_beta(injector, tarball).writelist()

    Injector(config=config).inject()
    Injector(config=config).inject()

    body = body_of(read_index(local_dir / "modules" / "02packages.details.txt.gz"))
    assert body == [ALPHA, BETA, ZULU]


def test_inject_missing_repository_file_is_a_copy_error(
    injector: Injector, tarball: Path, repository_dir: Path
) -> None:
    _add_beta(injector, tarball)
    (repository_dir / "authors" / "id" / "B" / "BB" / "BBB" / "Beta-1.0.tar.gz").unlink()

    with pytest.raises(CopyError):
        injector.inject()


def test_inject_with_empty_repository_keeps_index(injector: Injector, local_dir: Path) -> None:
    index = local_dir / "modules" / "02packages.details.txt.gz"
    before = read_index(index)
    injector.inject()
    assert read_index(index) == before


def test_add_twice_then_inject_writes_one_index_line(
    injector: Injector, tarball: Path, local_dir: Path
) -> None:
    _add_beta(injector, tarball)
    _add_beta(injector, tarball)

    injector.inject()

    body = body_of(read_index(local_dir / "modules" / "02packages.details.txt.gz"))
    assert body.count(BETA) == 1
    assert body == [ALPHA, BETA, ZULU]


def test_inject_ignores_blank_lines_in_module_list(
    injector: Injector, tarball: Path, local_dir: Path, repository_dir: Path, config: InjectConfig
) -> None:
    _add_beta(injector, tarball).writelist()
    with (repository_dir / "modulelist").open("a", encoding="utf-8") as f:
        f.write("\n   \n")

    Injector(config=config).inject()

    body = body_of(read_index(local_dir / "modules" / "02packages.details.txt.gz"))
    assert body == [ALPHA, BETA, ZULU]


def test_updpackages_ignores_blank_lines_in_module_list(
    injector: Injector, tarball: Path, local_dir: Path, repository_dir: Path, config: InjectConfig
) -> None:
    _add_beta(injector, tarball).writelist()
    with (repository_dir / "modulelist").open("a", encoding="utf-8") as f:
        f.write("\n")

    Injector(config=config).updpackages()

    body = body_of(read_index(local_dir / "modules" / "02packages.details.txt.gz"))
    assert body == [ALPHA, BETA, ZULU]


def test_inject_malformed_entry_is_a_read_error(
    repository_dir: Path, config: InjectConfig
) -> None:
    (repository_dir / "modulelist").write_text("JustAName\n", encoding="utf-8")

    with pytest.raises(ReadError, match="JustAName"):
        Injector(config=config).inject()
