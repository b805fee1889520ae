from parasocial.core.security import create_access_token, decode_token
from parasocial.core.redis import redis_client, get_redis

__all__ = ["create_access_token", "decode_token", "redis_client", "get_redis"]
