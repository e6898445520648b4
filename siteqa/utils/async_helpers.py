"""
Async utilities for the question-answering pipeline.

The request path is a single coroutine; blocking work (document downloads,
PyMuPDF parsing, Tesseract) is pushed to the default thread pool and the
language model call is bounded by a timeout.

Functions:
    async_timeout: Await a coroutine with a timeout and logging
    make_async: Run a synchronous callable in the default executor
"""

import asyncio
import logging
from functools import wraps
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def async_timeout(coro: Awaitable[T], timeout: float, operation_name: str = "operation") -> T:
    """
    Execute async operation with timeout and proper error handling.

    Args:
        coro: Async operation to execute
        timeout: Timeout in seconds
        operation_name: Name of operation for logging

    Returns:
        Result of the async operation

    Raises:
        asyncio.TimeoutError: When operation exceeds timeout
    """
    try:
        logger.debug(f"Starting {operation_name} with {timeout}s timeout")
        result = await asyncio.wait_for(coro, timeout=timeout)
        logger.debug(f"Completed {operation_name} successfully")
        return result

    except asyncio.TimeoutError:
        logger.error(f"Operation {operation_name} timed out after {timeout}s")
        raise
    except Exception as e:
        logger.error(f"Operation {operation_name} failed: {str(e)}")
        raise


def make_async(sync_func: Callable[..., T]) -> Callable[..., Awaitable[T]]:
    """
    Convert a synchronous function to async using the default thread pool.

    Args:
        sync_func: Synchronous function to convert

    Returns:
        Async version of the function

    Example:
        process_async = make_async(pdf_processor.process)
        source = await process_async(url, title)
    """
    @wraps(sync_func)
    async def async_wrapper(*args, **kwargs) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: sync_func(*args, **kwargs))

    return async_wrapper
