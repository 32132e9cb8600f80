from __future__ import annotations

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional

from mini_inject.domain.errors import MirrorSyncError
from mini_inject.domain.models import MirrorOptions

logger = logging.getLogger(__name__)

DEFAULT_MIRROR_COMMAND = "minicpan"


class MirrorSync(ABC):
    """
    Brings the local mirror up to date with a remote site.
    """

    @abstractmethod
    def sync(self, options: MirrorOptions) -> None:
        """Update ``options.local`` from ``options.remote``; raise MirrorSyncError on failure."""
        pass


class CommandMirrorSync(MirrorSync):
    """
    Delegates mirroring to an external command line tool (``minicpan`` by
    default), passing the options as flags.
    """

    def __init__(self, command: str = DEFAULT_MIRROR_COMMAND, timeout: Optional[float] = None):
        self.command = command
        self.timeout = timeout

    def build_args(self, options: MirrorOptions) -> List[str]:
        args = [self.command, "-l", options.local, "-r", options.remote]
        if options.trace:
            args.append("--debug")
        else:
            args.append("-q")
        if not options.skip_perl:
            args.append("-p")
        args.extend(["-d", f"0{options.dirmode:o}"])
        return args

    def sync(self, options: MirrorOptions) -> None:
        if shutil.which(self.command) is None:
            raise MirrorSyncError(f"Mirror command not found: {self.command}")

        env = dict(os.environ)
        if options.passive:
            env["FTP_PASSIVE"] = "1"

        args = self.build_args(options)
        logger.info(f"Updating mirror {options.local} from {options.remote}")
        logger.debug(f"Running {' '.join(args)}")
        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
                env=env,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise MirrorSyncError(f"Mirror sync failed: {e}") from e

        if proc.returncode != 0:
            logger.error(f"Mirror sync exited with {proc.returncode}: {proc.stderr[:2000]}")
            raise MirrorSyncError(f"Mirror sync exited with status {proc.returncode}")
