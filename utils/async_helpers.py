import asyncio
import threading
from functools import partial

_engine_loop = None
_engine_thread = None
_lock = threading.Lock()


def _serve(loop):
    asyncio.set_event_loop(loop)
    loop.run_forever()


def _engine_event_loop():
    global _engine_loop, _engine_thread
    with _lock:
        if _engine_loop is None or _engine_loop.is_closed():
            _engine_loop = asyncio.new_event_loop()
            _engine_thread = threading.Thread(target=_serve, args=(_engine_loop,),
                                              name="moodmix-engine", daemon=True)
            _engine_thread.start()
        return _engine_loop


def run_async(coro, timeout=None):
    """Run a mix-engine coroutine from synchronous code (CLI, service layer).

    Every call is submitted to one long-lived loop on a daemon thread, so
    repeated mix runs share it. Blocks until the coroutine finishes and
    returns (or raises) its result.
    """
    future = asyncio.run_coroutine_threadsafe(coro, _engine_event_loop())
    return future.result(timeout)


def shutdown_loop():
    """Stop the shared loop; the next run_async call starts a fresh one"""
    global _engine_loop, _engine_thread
    with _lock:
        loop, thread = _engine_loop, _engine_thread
        _engine_loop = _engine_thread = None
    if loop is None or loop.is_closed():
        return
    loop.call_soon_threadsafe(loop.stop)
    if thread is not None:
        thread.join(timeout=5)
    loop.close()


async def run_blocking(func, *args, **kwargs):
    """Run a blocking provider SDK call in the default executor"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))
