"""
On-disk state of the private repository: the module list and the
permissions of everything the injector writes.
"""
