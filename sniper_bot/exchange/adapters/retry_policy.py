from __future__ import annotations

import logging

import httpx
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

# Transport faults only. An HTTP error reply is an answer and is raised as ExchangeError.
RETRYABLE = (TimeoutError, httpx.TimeoutException, httpx.TransportError)


def default_retry(attempts: int = 5):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=0.2, max=5.0),
        retry=retry_if_exception_type(RETRYABLE),
        before_sleep=before_sleep_log(logging.getLogger("binance"), logging.WARNING),
    )
