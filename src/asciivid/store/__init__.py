"""On-disk state shared across pipeline stages."""

from asciivid.store.cache import CacheRecord, StalenessCache
from asciivid.store.manifest import FrameEntry, FrameManifest

__all__ = ["CacheRecord", "FrameEntry", "FrameManifest", "StalenessCache"]
