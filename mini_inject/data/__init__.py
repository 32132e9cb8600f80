"""
Package index handling for the local mirror.

This package is responsible for:
* Streaming the mirror's gzip compressed 02packages.details.txt.gz.
* Merging the repository's pending records into it in sorted order.
* Replacing the mirror's index with the merged result.
"""
