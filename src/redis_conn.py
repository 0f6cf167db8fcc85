from functools import lru_cache

from redis import Redis

from src.config import REDIS_URL


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    # Cached payloads are JSON text; decode on read.
    return Redis.from_url(REDIS_URL, decode_responses=True, socket_connect_timeout=0.5)
