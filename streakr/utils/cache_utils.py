"""
Cache utilities for STREAKr
Round structures are read on every picks request and change only on import
"""

import functools

from flask import current_app

from streakr import cache


def cached_query(model_name, timeout=300):
    """
    Decorator for caching database query results

    Args:
        model_name: Name of the model for cache key generation
        timeout: Cache timeout in seconds
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            args_str = "_".join(str(arg) for arg in args)
            kwargs_str = "_".join(f"{k}_{v}" for k, v in sorted(kwargs.items()))
            cache_key = f"query_{model_name}_{f.__name__}_{args_str}_{kwargs_str}"

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Query cache hit: {cache_key}")
                return result

            result = f(*args, **kwargs)
            if result is not None:
                cache.set(cache_key, result, timeout=timeout)
                current_app.logger.debug(f"Query cache set: {cache_key}")

            return result

        return wrapped

    return decorator


def invalidate_model_cache(model_name):
    """
    Invalidate all cache entries for a specific model

    SimpleCache cannot delete by pattern, so the whole cache is cleared.

    Args:
        model_name: Name of the model to invalidate
    """
    try:
        cache.clear()
        current_app.logger.info(f"Cache cleared for model: {model_name}")
    except Exception as e:
        current_app.logger.error(f"Failed to clear cache: {e}")
