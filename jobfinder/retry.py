"""
Bounded retry with exponential backoff for calls to external services.
"""

import time
from typing import Any, Callable, Tuple, Type

from rich.console import Console

console = Console()

RETRY_STATUS = {429, 500, 502, 503, 504}


def backoff_delay(attempt: int, backoff_base: float) -> float:
    """Delay before retry number `attempt` (1-based): 0.75s, 1.5s, 3.0s ..."""
    return backoff_base * (2 ** (attempt - 1))


def call_with_retries(func: Callable[..., Any], *args,
                      retries: int = 2,
                      backoff_base: float = 0.75,
                      retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                      description: str = "request",
                      **kwargs) -> Any:
    """
    Call `func` and retry it when it raises one of `retry_on`.

    The call is attempted at most `retries + 1` times. The last exception is
    re-raised once the attempts are exhausted.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return func(*args, **kwargs)
        except retry_on as e:
            if attempt > retries:
                raise
            sleep_time = backoff_delay(attempt, backoff_base)
            console.print(
                f"[yellow]{description} failed ({e}); "
                f"retry {attempt}/{retries} in {sleep_time:.2f}s[/yellow]"
            )
            time.sleep(sleep_time)
