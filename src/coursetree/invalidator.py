"""Marks read-side cache entries stale after a scope was persisted."""

from __future__ import annotations

import logging

from coursetree.cache_utils import MODULES_KEY, CacheKey, ReadCache, module_detail_key
from coursetree.exceptions import NodeNotFoundError
from coursetree.schemas import NodeKind, ScopeKey
from coursetree.tree import TreeModel

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """Resolves a sibling scope to the cached views that show it.

    Module scopes only affect the module list. Chapter and item scopes also
    affect the owning module's detail view. The invalidator never fetches.
    """

    def __init__(self, cache: ReadCache, tree: TreeModel) -> None:
        self._cache = cache
        self._tree = tree

    def keys_for(self, scope_key: ScopeKey) -> list[CacheKey]:
        keys = [MODULES_KEY]
        if scope_key.kind is NodeKind.MODULE or scope_key.parent is None:
            return keys
        try:
            module = self._tree.module_of(scope_key.parent)
        except NodeNotFoundError:
            # Parent was removed meanwhile; drop every detail view.
            return keys + self._cache.keys_with_prefix(("module-detail",))
        return keys + [module_detail_key(module.pk)]

    def invalidate(self, scope_key: ScopeKey) -> list[CacheKey]:
        keys = self.keys_for(scope_key)
        for key in keys:
            self._cache.invalidate(key)
        logger.info("Invalidated cached views", extra={"scope": str(scope_key), "keys": keys})
        return keys
