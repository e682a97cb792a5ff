from fbscrape.config import Config
from fbscrape.detector import BackendDetector


def test_only_standalone_without_credentials():
    detector = BackendDetector(Config())
    detected = detector.detect()

    assert [b.name for b in detected] == ["brightdata", "firecrawl", "playwright-mcp", "standalone"]
    assert [b.priority for b in detected] == [1, 2, 3, 4]
    assert [b.name for b in detector.get_available()] == ["standalone"]
    assert detector.get_first() == "standalone"
    assert not detector.is_available("brightdata")


def test_credentials_enable_backends_in_priority_order():
    detector = BackendDetector(Config(
        brightdata_token="tok",
        firecrawl_api_key="key",
        playwright_mcp_enabled=True,
    ))

    assert detector.get_first() == "brightdata"
    assert [b.name for b in detector.get_available()] == [
        "brightdata", "firecrawl", "playwright-mcp", "standalone",
    ]
    assert detector.is_available("firecrawl")
    assert "found" in detector.detect()[0].reason


def test_detection_is_memoized_until_reset():
    config = Config()
    detector = BackendDetector(config)
    first = detector.detect()

    config.firecrawl_api_key = "key"
    assert detector.detect() is first
    assert not detector.is_available("firecrawl")

    detector.reset()
    assert detector.is_available("firecrawl")
    assert detector.get_first() == "firecrawl"
