# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import requests
import redis


def _backoff(exc_types, multiplier: float, max_wait: float):
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=multiplier, min=multiplier, max=max_wait),
        retry=retry_if_exception_type(exc_types),
    )


#reads are safe to repeat on any transport error
def http_retry():
    return _backoff(requests.RequestException, multiplier=0.3, max_wait=3)


#writes only when the request never reached the server (a read timeout may already have inserted the row)
def http_write_retry():
    return _backoff(requests.ConnectionError, multiplier=0.3, max_wait=3)


#storage reads and writes overwrite whole values, repeating them is harmless
def redis_retry():
    return _backoff(redis.RedisError, multiplier=0.2, max_wait=2)
