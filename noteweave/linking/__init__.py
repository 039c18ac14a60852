"""Wikilink extraction, resolution and connection graph synchronization."""

from noteweave.linking.content_extractor import ContentExtractor, Mention
from noteweave.linking.resolver import TargetResolver
from noteweave.linking.synchronizer import GraphSynchronizer

__all__ = [
    "ContentExtractor",
    "GraphSynchronizer",
    "Mention",
    "TargetResolver",
]
