from pathlib import Path

import pytest

from mini_inject.core.config import parse_config
from mini_inject.services.injector import Injector
from tests.index_helpers import ALPHA, ZULU, write_index


@pytest.fixture
def local_dir(tmp_path: Path) -> Path:
    local = tmp_path / "local"
    write_index(local / "modules" / "02packages.details.txt.gz", [ALPHA, ZULU])
    return local


@pytest.fixture
def repository_dir(tmp_path: Path) -> Path:
    repository = tmp_path / "repository"
    repository.mkdir()
    return repository


@pytest.fixture
def config_file(tmp_path: Path, local_dir: Path, repository_dir: Path) -> Path:
    path = tmp_path / "mcpani.conf"
    path.write_text(
        "# test configuration\n"
        f"local: {local_dir}\n"
        "remote: http://mirror-one.example/CPAN http://mirror-two.example/CPAN/\n"
        f"repository: {repository_dir}\n"
        "dirmode: 0755\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config(config_file: Path):
    return parse_config(config_file)


@pytest.fixture
def injector(config) -> Injector:
    return Injector(config=config)


@pytest.fixture
def tarball(tmp_path: Path) -> Path:
    path = tmp_path / "build" / "Beta-1.0.tar.gz"
    path.parent.mkdir()
    path.write_bytes(b"not really a tarball\n")
    return path
