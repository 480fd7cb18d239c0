from typing import Dict
import pytest
import redis

class FakeRedis:
    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.down = False

    def _h(self, key):
        if self.down:
            raise redis.ConnectionError("connection refused")
        return self.hashes.setdefault(key, {})

    def hsetnx(self, key, field, value):
        h = self._h(key)
        if field in h:
            return 0
        h[field] = str(value)
        return 1

    def hexists(self, key, field):
        return field in self._h(key)

    def hset(self, key, field, value):
        self._h(key)[field] = str(value)
        return 1

    def hget(self, key, field):
        return self._h(key).get(field)

    def hgetall(self, key):
        return dict(self._h(key))

    def hincrby(self, key, field, amount):
        h = self._h(key)
        h[field] = str(int(h.get(field, 0)) + amount)
        return int(h[field])

    def close(self):
        pass

@pytest.fixture
def fake_redis():
    return FakeRedis()

