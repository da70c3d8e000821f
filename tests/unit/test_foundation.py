"""
Test suite for configuration, logging, exceptions and validators.
"""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from sitefeed.config.settings import EnhancerSettings, SiteFeedSettings, get_settings, load_settings
from sitefeed.utils.exceptions import (
    CacheError,
    ConfigurationError,
    ErrorCode,
    PostContentError,
    SiteFeedError,
    ValidationError,
    get_user_friendly_message,
    handle_exception,
)
from sitefeed.utils.logging import (
    ColoredConsoleFormatter,
    PerformanceLogger,
    StructuredFormatter,
    get_logger_for_component,
    setup_logger,
)
from sitefeed.utils.validators import SlugValidator, URLValidator


class TestSettings:
    """Test configuration loading."""

    def test_defaults(self):
        settings = EnhancerSettings()

        assert settings.feed_path.as_posix() == "dist/rss.xml"
        assert settings.posts_path.as_posix() == "dist/posts"
        assert settings.cache_dir == "./tmp/rss-cache"
        assert settings.description_length == 50
        assert settings.last_build_time is None

    def test_naive_build_time_is_utc(self):
        settings = EnhancerSettings(last_build_time="2024-05-01T10:00:00")

        assert settings.last_build_time == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)

    def test_absolute_feed_filename_rejected(self):
        with pytest.raises(PydanticValidationError):
            EnhancerSettings(feed_filename="/etc/rss.xml")

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SITEFEED_ENHANCER__DIST_DIR", "public")
        monkeypatch.setenv("SITEFEED_ENHANCER__LAST_BUILD_TIME", "2024-05-01T10:00:00Z")
        monkeypatch.setenv("SITEFEED_LOGGING__LEVEL", "WARNING")

        settings = load_settings()

        assert settings.enhancer.dist_dir == "public"
        assert settings.enhancer.last_build_time == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
        assert settings.get_effective_log_level() == "WARNING"
        assert (tmp_path / "tmp" / "rss-cache").is_dir()

    def test_invalid_environment_wrapped(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SITEFEED_ENHANCER__DESCRIPTION_LENGTH", "1")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID

    def test_future_build_time_rejected(self, tmp_path):
        future = datetime.now(timezone.utc) + timedelta(days=1)
        settings = SiteFeedSettings(
            enhancer=EnhancerSettings(cache_dir=str(tmp_path / "cache"), last_build_time=future)
        )

        with pytest.raises(ConfigurationError):
            settings.validate_configuration()

    def test_debug_forces_debug_level(self):
        assert SiteFeedSettings(debug=True).get_effective_log_level() == "DEBUG"

    def test_get_settings_is_cached(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        first = get_settings()

        assert get_settings() is first
        assert get_settings(reload=True) is not first


class TestExceptions:
    """Test the error hierarchy."""

    def test_string_form_carries_code(self):
        error = CacheError("disk gone", cache_path="/tmp/c")

        assert str(error) == "[K001] disk gone"
        assert error.context == {"cache_path": "/tmp/c"}

    def test_to_dict(self):
        error = PostContentError("no page", slug="hello")
        data = error.to_dict()

        assert data["error_type"] == "PostContentError"
        assert data["error_code"] == "P001"
        assert data["context"] == {"slug": "hello"}
        assert data["recoverable"] is True

    def test_user_friendly_message(self):
        assert get_user_friendly_message(ValidationError("bad", field_name="slug")) == (
            "Invalid slug: bad"
        )
        assert "unexpected" in get_user_friendly_message(RuntimeError("boom"))

    def test_handle_exception_maps_file_not_found(self, caplog):
        logger = logging.getLogger("sitefeed.test")

        with caplog.at_level(logging.ERROR, logger="sitefeed.test"):
            error = handle_exception(FileNotFoundError("x"), logger, "read page")

        assert isinstance(error, PostContentError)
        assert error.error_code == ErrorCode.CONTENT_SOURCE_MISSING
        assert error.context["operation"] == "read page"
        assert "read page" in caplog.text

    def test_handle_exception_passes_through_own_errors(self):
        original = ConfigurationError("bad", config_key="enhancer")

        assert handle_exception(original, logging.getLogger("sitefeed.test"), "load") is original

    def test_handle_exception_unexpected(self):
        error = handle_exception(RuntimeError("boom"), logging.getLogger("sitefeed.test"), "run")

        assert type(error) is SiteFeedError
        assert error.error_code == ErrorCode.SYSTEM_UNEXPECTED

    def test_error_codes_unique_without_retired_values(self):
        codes = [code.value for code in ErrorCode]

        assert len(codes) == len(set(codes))
        assert not {"C002", "C003", "S002"} & set(codes)


class TestLogging:
    """Test logging helpers."""

    def _record(self, **extra):
        record = logging.LogRecord("sitefeed.enhancer", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_structured_formatter(self):
        data = json.loads(StructuredFormatter().format(self._record(slug="café")))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["extra"] == {"slug": "café"}

    def test_console_formatter_shows_slug(self):
        line = ColoredConsoleFormatter().format(self._record(slug="hello-world"))

        assert "sitefeed.enhancer[hello-world]" in line
        assert "hello world" in line

    def test_setup_logger_writes_json_file(self, tmp_path):
        log_file = tmp_path / "logs" / "sitefeed.log"
        logger = setup_logger("sitefeed.filetest", level="DEBUG", log_file=str(log_file), console=False)

        logger.info("written")
        for handler in logger.handlers:
            handler.flush()
            handler.close()
        logger.handlers.clear()

        assert json.loads(log_file.read_text().splitlines()[0])["message"] == "written"

    def test_component_logger_context(self, caplog):
        log = get_logger_for_component("sanitizer", slug="a").bind(feed_path="dist/rss.xml")

        with caplog.at_level(logging.INFO, logger="sitefeed.sanitizer"):
            log.info("bound")

        record = caplog.records[-1]
        assert record.name == "sitefeed.sanitizer"
        assert record.component == "sanitizer"
        assert record.slug == "a"
        assert record.feed_path == "dist/rss.xml"

    def test_performance_logger(self, caplog):
        logger = logging.getLogger("sitefeed.perf")

        with caplog.at_level(logging.INFO, logger="sitefeed.perf"):
            with PerformanceLogger(logger, "work") as timer:
                pass

        assert timer.duration is not None
        assert "Completed work" in caplog.text

    def test_performance_logger_failure(self, caplog):
        logger = logging.getLogger("sitefeed.perf")

        with caplog.at_level(logging.INFO, logger="sitefeed.perf"):
            with pytest.raises(RuntimeError):
                with PerformanceLogger(logger, "work"):
                    raise RuntimeError("boom")

        assert "Failed work" in caplog.text


class TestValidators:
    """Test slug and URL validation."""

    @pytest.mark.parametrize(
        "link, slug",
        [
            ("https://example.com/posts/hello-world/", "hello-world"),
            ("https://example.com/posts/hello-world", "hello-world"),
            ("https://example.com/posts/caf%C3%A9/", "café"),
            ("https://example.com/posts/a/?utm=1#top", "a"),
            ("/posts/relative/", "relative"),
        ],
    )
    def test_slug_from_link(self, link, slug):
        assert SlugValidator.slug_from_link(link) == slug

    @pytest.mark.parametrize(
        "link",
        ["", "https://example.com/", "https://example.com/posts/a%2Fb/", "https://example.com/posts/../"],
    )
    def test_unusable_links(self, link):
        with pytest.raises(ValidationError):
            SlugValidator.slug_from_link(link)

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://example.com/", "https://example.com"),
            ("http://example.com/blog/", "http://example.com/blog"),
            (" https://example.com ", "https://example.com"),
        ],
    )
    def test_normalize_base_url(self, url, expected):
        assert URLValidator.normalize_base_url(url) == expected

    @pytest.mark.parametrize("url", ["", "example.com", "ftp://example.com/", "https:///path"])
    def test_invalid_base_url(self, url):
        with pytest.raises(ValidationError):
            URLValidator.normalize_base_url(url)
