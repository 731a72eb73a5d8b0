from crawlkit.configs import CrawlkitConfig


class TestCrawlkitConfig:
    def test_defaults(self):
        config = CrawlkitConfig()
        assert config.USER_AGENT == "crawlkit"
        assert config.RETRY_COUNT == 0
        assert config.PROXY_POOL == []
        assert config.CONCURRENCY is None
        assert config.CACHE_ENABLED is False
        assert config.LOG_LEVEL == "INFO"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("CRAWLKIT_RETRY_COUNT", "3")
        monkeypatch.setenv("CRAWLKIT_PROXY_POOL", '["http://10.0.0.1:8080", "socks5://10.0.0.2:1080"]')
        monkeypatch.setenv("CRAWLKIT_COOKIES", '{"sid": "abc"}')
        monkeypatch.setenv("CRAWLKIT_DEBUG", "true")

        config = CrawlkitConfig()

        assert config.RETRY_COUNT == 3
        assert config.PROXY_POOL == ["http://10.0.0.1:8080", "socks5://10.0.0.2:1080"]
        assert config.COOKIES == {"sid": "abc"}
        assert config.DEBUG is True

    def test_unprefixed_env_ignored(self, monkeypatch):
        monkeypatch.setenv("RETRY_COUNT", "9")
        assert CrawlkitConfig().RETRY_COUNT == 0
