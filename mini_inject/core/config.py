"""
Locate and parse the mcpani configuration file.

The file is a list of ``key: value`` lines, e.g.

    local: /www/CPAN
    remote: ftp://ftp.cpan.org/pub/CPAN ftp://ftp.kernel.org/pub/CPAN
    repository: /work/mymodules
    passive: yes
    dirmode: 0755
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from mini_inject.domain.errors import ConfigurationError
from mini_inject.domain.models import InjectConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MCPANI_CONFIG"
REQUIRED_KEYS = ("local", "remote")


def config_search_path() -> List[Path]:
    """
    Candidate config files, in priority order:
    1. Environment variable MCPANI_CONFIG
    2. $HOME/.mcpani/config
    3. /usr/local/etc/mcpani
    4. /etc/mcpani
    """
    candidates = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    home = os.environ.get("HOME")
    if home:
        candidates.append(Path(home) / ".mcpani" / "config")
    candidates.append(Path("/usr/local/etc/mcpani"))
    candidates.append(Path("/etc/mcpani"))
    return candidates


def find_config_file() -> Optional[Path]:
    for candidate in config_search_path():
        if candidate.is_file() and os.access(candidate, os.R_OK):
            return candidate
    return None


def load_config(cfgfile: Optional[Path] = None) -> Path:
    """
    Return ``cfgfile`` or the first readable default config file.
    """
    path = Path(cfgfile) if cfgfile else find_config_file()
    if path is None:
        raise ConfigurationError("Unable to find config file")
    return path


def parse_config(cfgfile: Path) -> InjectConfig:
    cfgfile = Path(cfgfile)
    if not os.access(cfgfile, os.R_OK):
        raise ConfigurationError(f"Can not read config file: {cfgfile}")

    try:
        raw = yaml.safe_load(cfgfile.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to parse config file {cfgfile}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {cfgfile} must contain 'key: value' lines")

    missing = [key for key in REQUIRED_KEYS if raw.get(key) in (None, "")]
    if missing:
        raise ConfigurationError(f"Required parameter(s): {' '.join(missing)}")

    try:
        config = InjectConfig(**{str(k): v for k, v in raw.items()})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {cfgfile}: {e}") from e

    logger.debug(f"Loaded config from {cfgfile}")
    return config
