import pytest

from crawlkit.exceptions import HookError, HookRegistrationError
from crawlkit.hooks import HookPipeline, run_after, run_before
from crawlkit.models import Request


class TestHookPipeline:
    def test_registration_order(self):
        pipeline = HookPipeline()
        first = pipeline.add_before(lambda r: None)
        second = pipeline.add_before(lambda r: None)
        before, after = pipeline.snapshot()
        assert before == (first, second)
        assert after == ()

    def test_snapshot_is_stable(self):
        pipeline = HookPipeline()
        pipeline.add_after(lambda r: None)
        before, after = pipeline.snapshot()
        pipeline.add_after(lambda r: None)
        assert len(after) == 1
        assert len(pipeline.snapshot()[1]) == 2

    def test_freeze(self):
        pipeline = HookPipeline()
        pipeline.freeze()
        assert pipeline.frozen is True
        with pytest.raises(HookRegistrationError):
            pipeline.add_before(lambda r: None)
        with pytest.raises(HookRegistrationError):
            pipeline.add_after(lambda r: None)


class TestRunHooks:
    @pytest.mark.asyncio
    async def test_all_before_hooks_run_after_abort(self):
        calls = []
        req = Request(method="GET", url="https://example.com")

        def aborting(r):
            calls.append("abort")
            r.abort()

        def later(r):
            calls.append("later")

        await run_before((aborting, later), req)
        assert calls == ["abort", "later"]
        assert req.aborted is True

    @pytest.mark.asyncio
    async def test_async_hooks(self):
        req = Request(method="GET", url="https://example.com")

        async def set_header(r):
            r.headers["X-Async"] = "yes"

        await run_before((set_header,), req)
        assert req.headers["X-Async"] == "yes"

    @pytest.mark.asyncio
    async def test_hook_exception_wrapped(self):
        def broken(r):
            raise ValueError("boom")

        with pytest.raises(HookError) as exc_info:
            await run_after((broken,), object())
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert "broken" in str(exc_info.value)
