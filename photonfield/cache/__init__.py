from photonfield.cache.contribution_cache import CacheKey, ContributionCache, contribution_key

__all__ = ["CacheKey", "ContributionCache", "contribution_key"]
