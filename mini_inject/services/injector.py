"""
The injector: adds private modules to a repository and injects them into a
local CPAN mirror.

Every public operation returns the injector so calls can be chained:

    Injector().parsecfg().update_mirror().inject()
"""
from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Dict, List, Optional

import httpx

from mini_inject.core.config import load_config, parse_config
from mini_inject.data.index_merger import IndexMerger
from mini_inject.domain.errors import (
    ConfigurationError,
    CopyError,
    MissingParameterError,
    PermissionError,
    ReadError,
)
from mini_inject.domain.models import InjectConfig, MirrorOptions, ModuleRecord
from mini_inject.domain.record_utils import format_record
from mini_inject.services.checksums import CHECKSUMS_FILENAME, ChecksumsUpdater, ManifestUpdater
from mini_inject.services.mirror import CommandMirrorSync, MirrorSync
from mini_inject.services.remote import select_remote_site
from mini_inject.storage.module_list import ModuleListStore
from mini_inject.storage.permissions import PermissionPolicy

logger = logging.getLogger(__name__)

ADD_PARAMETERS = ("module", "authorid", "version", "file")


class Injector:
    """
    Holds the configuration, the pending module list and the collaborators
    used to sync the mirror and regenerate checksum manifests.
    """

    def __init__(
        self,
        config: Optional[InjectConfig] = None,
        mirror_sync: Optional[MirrorSync] = None,
        manifest_updater: Optional[ManifestUpdater] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.cfgfile: Optional[Path] = None
        self.site: Optional[str] = None
        self.mirror_sync = mirror_sync or CommandMirrorSync()
        self.manifest_updater = manifest_updater or ChecksumsUpdater()
        self.http_transport = http_transport
        self._module_list: Optional[ModuleListStore] = None

    @classmethod
    def from_config_file(cls, cfgfile: Optional[Path] = None, **kwargs) -> "Injector":
        return cls(**kwargs).parsecfg(cfgfile)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def loadcfg(self, cfgfile: Optional[Path] = None) -> "Injector":
        """Remember ``cfgfile`` or the first default config file found."""
        self.cfgfile = load_config(cfgfile)
        return self

    def parsecfg(self, cfgfile: Optional[Path] = None) -> "Injector":
        """Read the config file into ``self.config``."""
        self.config = None
        self._module_list = None
        if cfgfile is not None or self.cfgfile is None:
            self.loadcfg(cfgfile)
        self.config = parse_config(self.cfgfile)
        return self

    def _require_config(self) -> InjectConfig:
        if self.config is None:
            raise ConfigurationError("No configuration loaded")
        return self.config

    def _repository(self) -> Path:
        config = self._require_config()
        if not config.repository:
            raise ConfigurationError("No repository configured")
        return Path(config.repository)

    def _local(self) -> Path:
        return Path(self._require_config().local)

    @property
    def permissions(self) -> PermissionPolicy:
        return PermissionPolicy(self.config.dirmode if self.config else None)

    @property
    def module_list(self) -> ModuleListStore:
        if self._module_list is None:
            self._module_list = ModuleListStore(self._repository(), self.permissions)
        return self._module_list

    @property
    def modulelist(self) -> Optional[List[str]]:
        """The pending record lines, or ``None`` when no list exists yet."""
        return self.module_list.records

    def _set_ftp_passive(self) -> None:
        if self.config is not None and self.config.passive:
            os.environ["FTP_PASSIVE"] = "1"

    # ------------------------------------------------------------------
    # Remote mirror
    # ------------------------------------------------------------------

    def testremote(self, verbose: bool = False) -> "Injector":
        """
        Probe the configured remote sites in order and keep the first one
        that answers as ``self.site``.
        """
        config = self._require_config()
        self.site = None
        self._set_ftp_passive()
        self.site = asyncio.run(
            select_remote_site(config.remote_sites, verbose=verbose, transport=self.http_transport)
        )
        return self

    def update_mirror(self, **options) -> "Injector":
        """
        Update the local mirror through the mirror sync collaborator.
        Explicit ``options`` win over configured values.
        """
        config = self._require_config()
        local = self._local()
        if not os.access(local, os.W_OK):
            raise PermissionError(f"Can not write to local: {local}")

        self._set_ftp_passive()

        trace = bool(options.get("trace") or False)
        if not options.get("remote") and self.site is None:
            self.testremote(trace)

        skip_perl = options.get("skip_perl")
        if skip_perl is None:
            skip_perl = config.perl if config.perl is not None else True

        mirror_options = MirrorOptions(
            local=options.get("local") or str(local),
            remote=options.get("remote") or self.site,
            trace=trace,
            skip_perl=skip_perl,
            dirmode=options.get("dirmode") or config.default_dirmode(),
            passive=config.passive,
        )
        self.mirror_sync.sync(mirror_options)
        return self

    # ------------------------------------------------------------------
    # Repository
    # ------------------------------------------------------------------

    def readlist(self) -> "Injector":
        """Load the repository's module list."""
        self.module_list.load()
        return self

    def writelist(self) -> "Injector":
        """Write the module list back to the repository, sorted."""
        self.module_list.save()
        return self

    def add(
        self,
        module: Optional[str] = None,
        authorid: Optional[str] = None,
        version: Optional[str] = None,
        file: Optional[str] = None,
    ) -> "Injector":
        """
        Copy ``file`` into the repository under the author's directory and
        record it in the (unsaved) module list.

        ``add(module="CPAN::Mini::Inject", authorid="SSORICHE",
        version="0.01", file="CPAN-Mini-Inject-0.01.tar.gz")`` copies the file
        to ``<repository>/authors/id/S/SS/SSORICHE/``.
        """
        given = {"module": module, "authorid": authorid, "version": version, "file": file}
        missing = [name for name in ADD_PARAMETERS if given[name] in (None, "")]
        if missing:
            raise MissingParameterError(missing)

        repository = self._repository()
        if not os.access(repository, os.W_OK):
            raise PermissionError(f"Can not write to repository: {repository}")
        source = Path(file)
        if not (source.is_file() and os.access(source, os.R_OK)):
            raise PermissionError(f"Can not read module file: {file}")

        store = self.module_list
        if not store.loaded:
            store.load()

        permissions = self.permissions
        authdir = permissions.ensure_author_dir(repository, authorid)
        target = repository / "authors" / "id" / authdir / source.name

        try:
            shutil.copy2(source, target)
        except OSError as e:
            logger.error(f"Copy {source} to {target.parent} failed: {e}")
            raise CopyError("Copy failed", e) from e
        permissions.update_file(target)

        record = format_record(module, f"{authdir}/{source.name}", str(version))
        store.append(record)
        logger.info(f"Added {module} {version} as {authdir}/{source.name}")
        return self

    # ------------------------------------------------------------------
    # Mirror injection
    # ------------------------------------------------------------------

    def inject(self, verbose: bool = False) -> "Injector":
        """
        Copy every module in the list into the local mirror, regenerate the
        CHECKSUMS of each touched author directory and merge the list into
        the mirror's package index.
        """
        repository = self._repository()
        local = self._local()
        permissions = self.permissions
        dirmode = self.config.dirmode

        store = self.module_list
        if not store.loaded:
            store.load()

        touched: Dict[str, None] = {}
        for line in store.records or []:
            try:
                record = ModuleRecord.from_line(line)
            except ValueError as e:
                raise ReadError(f"Malformed module list entry in {store.path}: {line!r}") from e
            source = repository / "authors" / "id" / record.path
            target = local / "authors" / "id" / record.path

            touched[record.author_dir] = None

            permissions.make_path(target.parent, dirmode)
            try:
                shutil.copy2(source, target)
            except OSError as e:
                logger.error(f"Copy {source} to {target.parent} failed: {e}")
                raise CopyError(f"Copy {source} to {target.parent} failed", e) from e
            permissions.update_file(target)

            if verbose:
                logger.info(f"{target} ... injected")
            else:
                logger.debug(f"{target} ... injected")

        for directory in touched:
            authdir = local / "authors" / "id" / directory
            self.manifest_updater.update_dir(authdir)
            permissions.update_file(authdir / CHECKSUMS_FILENAME)

        return self.updpackages()

    def updpackages(self) -> "Injector":
        """
        Merge the module list into the mirror's
        modules/02packages.details.txt.gz.
        """
        merger = IndexMerger(self._local(), self._repository(), self.permissions)
        store = self.module_list
        if not store.loaded:
            store.load()
        merger.merge(store.records)
        return self
