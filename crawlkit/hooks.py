import inspect
import threading

from .exceptions import HookError, HookRegistrationError
from .models import Request, Response
from .types import HandleRequest, HandleResponse


class HookPipeline:
    """Ordered before-request and after-response callbacks.

    Registration replaces the stored tuples instead of mutating them, so a
    dispatch holding a snapshot keeps seeing the same hooks while another
    thread registers more. ``freeze()`` rejects further registration.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._before: tuple[HandleRequest, ...] = ()
        self._after: tuple[HandleResponse, ...] = ()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_before(self, hook: HandleRequest) -> HandleRequest:
        with self._lock:
            self._check_open()
            self._before = (*self._before, hook)
        return hook

    def add_after(self, hook: HandleResponse) -> HandleResponse:
        with self._lock:
            self._check_open()
            self._after = (*self._after, hook)
        return hook

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    def snapshot(self) -> tuple[tuple[HandleRequest, ...], tuple[HandleResponse, ...]]:
        with self._lock:
            return self._before, self._after

    def _check_open(self) -> None:
        if self._frozen:
            raise HookRegistrationError()


async def _call(hook, target) -> None:
    try:
        result = hook(target)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        name = getattr(hook, "__qualname__", repr(hook))
        raise HookError(f"hook {name} failed: {e!r}") from e


async def run_before(hooks: tuple[HandleRequest, ...], request: Request) -> None:
    # every hook runs, an abort only stops the network call afterwards
    for hook in hooks:
        await _call(hook, request)


async def run_after(hooks: tuple[HandleResponse, ...], response: Response) -> None:
    for hook in hooks:
        await _call(hook, response)
