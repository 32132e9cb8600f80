"""
Inject privately-built packages into a mirrored CPAN-style archive.

The typical run is:

    injector = Injector.from_config_file()
    injector.add(module="My::Module", authorid="ME", version="0.01",
                 file="My-Module-0.01.tar.gz").writelist()
    injector.update_mirror().inject()
"""
from mini_inject.services.injector import Injector

__all__ = ["Injector"]
__version__ = "0.14.0"
