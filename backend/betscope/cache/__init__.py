"""Three-tier research cache.

- Memory tier (process-local) and disk tier (survives a client restart),
  owned by ``betscope.cache.client.ResearchCacheClient``
- Authoritative ``ResearchStore``: shared, TTL-enforced source of truth

All tiers share the lookup / put / patch contract of ``CacheTier``.
"""

from .models import CacheEntry, utc_now
from .store import ResearchStore, create_research_store
from .tiers import CacheTier, DiskCacheTier, JsonFileTier, MemoryCacheTier

__all__ = [
    "CacheEntry",
    "utc_now",
    "CacheTier",
    "MemoryCacheTier",
    "JsonFileTier",
    "DiskCacheTier",
    "ResearchStore",
    "create_research_store",
]
