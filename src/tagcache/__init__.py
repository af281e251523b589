"""
tagcache – read-through cache with tag invalidation and stampede control.

Import path convention::

    from tagcache.application.cache import ReadThroughCache, build_key
    from tagcache.config import CacheSettings, load_tables_file
    from tagcache.application.cache.lifecycle import CacheRuntime
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
