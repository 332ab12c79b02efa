import logging
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
import redis as _redis

from storefront.cache import MemoryCache, RedisCache

logger = logging.getLogger(__name__)

db = SQLAlchemy()
migrate = Migrate()

# Initialized lazily in create_app
redis_client: _redis.Redis = None  # type: ignore
cache = None


def init_cache(app):
    global redis_client, cache
    ttl = app.config.get("CACHE_DEFAULT_TTL", 120)
    redis_url = app.config.get("REDIS_URL", "")
    if not redis_url:
        logger.warning("REDIS_URL not set, using in-process cache")
        redis_client = None
        cache = MemoryCache(default_ttl=ttl)
        return cache

    try:
        redis_client = _redis.from_url(redis_url, decode_responses=False)
        redis_client.ping()
        cache = RedisCache(
            redis_client,
            default_ttl=ttl,
            namespace=app.config.get("CACHE_NAMESPACE", "storefront"),
        )
    except Exception as e:
        logger.warning("Redis connection failed (%s), using in-process cache", e)
        redis_client = None
        cache = MemoryCache(default_ttl=ttl)
    return cache
