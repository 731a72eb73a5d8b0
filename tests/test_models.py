import httpx

from crawlkit.context import Context
from crawlkit.models import AtomicCounter, Request, Response
from crawlkit.types import BodyKind


class TestContext:
    def test_put_and_get(self):
        ctx = Context()
        ctx.put("qid", "100")
        ctx.put("page", 3)
        assert ctx.get("qid") == "100"
        assert ctx.get("page") == "3"
        assert ctx.get_any("page") == 3

    def test_missing_key(self):
        ctx = Context()
        assert ctx.get("missing") == ""
        assert ctx.get_any("missing") is None
        assert "missing" not in ctx

    def test_delete_and_len(self):
        ctx = Context({"a": 1, "b": 2})
        assert len(ctx) == 2
        assert ctx.delete("a") == 1
        assert len(ctx) == 1
        assert list(ctx) == ["b"]


class TestAtomicCounter:
    def test_increment(self):
        counter = AtomicCounter()
        assert counter.increment() == 1
        assert counter.increment() == 2
        assert counter.value == 2

    def test_reset(self):
        counter = AtomicCounter(5)
        counter.reset()
        assert counter.value == 0


class TestRequest:
    def test_create_request(self):
        req = Request(method="GET", url="https://example.com")
        assert req.method == "GET"
        assert req.url == "https://example.com"
        assert len(req.headers) == 0
        assert req.body == bytearray()
        assert req.retries == 0
        assert req.aborted is False

    def test_abort(self):
        req = Request(method="GET", url="https://example.com")
        req.abort()
        assert req.aborted is True

    def test_set_headers_case_insensitive(self):
        req = Request(method="GET", url="https://example.com")
        req.set_headers({"accept-language": "zh-CN", "X-Token": "t"})
        req.set_content_type("application/json")
        assert req.headers["Accept-Language"] == "zh-CN"
        assert req.headers["content-type"] == "application/json"

    def test_increment_retries(self):
        req = Request(method="GET", url="https://example.com")
        assert req.increment_retries() == 1
        assert req.retries == 1

    def test_reset_keeps_buffers(self):
        req = Request(method="POST", url="https://example.com", id=7, proxy_url="http://p:1")
        body, headers, fields = req.body, req.headers, req.form_fields
        req.body += b"payload"
        req.headers["X-A"] = "1"
        req.form_fields.append(("id", "100"))
        req.body_kind = BodyKind.FORM
        req.boundary = "b"
        req.ctx = Context()
        req.abort()
        req.increment_retries()

        req.reset()

        assert req.body is body and len(req.body) == 0
        assert req.headers is headers and len(req.headers) == 0
        assert req.form_fields is fields and fields == []
        assert req.body_kind is BodyKind.RAW and req.boundary == ""
        assert (req.url, req.method, req.id, req.proxy_url) == ("", "", 0, "")
        assert req.ctx is None and req.crawler is None
        assert req.aborted is False
        assert req.retries == 0


class TestResponse:
    def _response(self, status_code: int, body: bytes = b"") -> Response:
        req = Request(method="GET", url="https://example.com", ctx=Context())
        return Response(
            status_code=status_code,
            headers=httpx.Headers({"content-type": "application/json"}),
            body=body,
            request=req,
            ctx=req.ctx,
        )

    def test_shares_request_context(self):
        resp = self._response(200)
        assert resp.ctx is resp.request.ctx
        assert resp.from_cache is False

    def test_ok_property(self):
        assert self._response(200).ok is True
        assert self._response(404).ok is False
        assert self._response(500).ok is False

    def test_json_method(self):
        resp = self._response(200, b'{"name": "test", "value": 123}')
        assert resp.json() == {"name": "test", "value": 123}
        assert resp.text() == '{"name": "test", "value": 123}'

