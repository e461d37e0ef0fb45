import uuid

import redis

from foodmarket.utils.logging import get_logger
from foodmarket.utils.retry import redis_retry

logger = get_logger(__name__)

#LUA porownaj i usun, atomowo - nie zwalniamy cudzego locka
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Lock na zadanie w tle (np. sweep koszykow), zeby dwa workery/beaty
    nie robily tego samego naraz.
    """

    def __init__(self, client: redis.Redis):
        self.redis = client

    @classmethod
    def from_url(cls, url: str) -> "LockService":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def new_owner(self) -> str:
        return str(uuid.uuid4())

    @redis_retry()
    def acquire(self, name: str, owner: str, ttl: int) -> bool:
        key = f"lock:{name}"
        logger.info(f"Acquire lock {key} by {owner}")
        #SET lock:name owner NX EX ttl - wygasa sam gdy worker padnie
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def release(self, name: str, owner: str) -> bool:
        key = f"lock:{name}"
        logger.info(f"Release lock {key} by {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
