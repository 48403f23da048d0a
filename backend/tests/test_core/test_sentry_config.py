"""Tests for Sentry SDK configuration with privacy-compliant settings."""

import os
from typing import Any
from unittest.mock import patch

from core.sentry_config import _before_send, _traces_sampler, init_sentry


class TestBeforeSendPIIScrubbing:
    """Tests for PII scrubbing in _before_send."""

    def test_scrubs_email_and_username(self) -> None:
        event: dict[str, Any] = {
            "user": {"id": "123", "email": "user@example.com", "username": "u"}
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"] == {"id": "123"}  # type: ignore[typeddict-item]

    def test_anonymizes_ip_address(self) -> None:
        event: dict[str, Any] = {"user": {"id": "123", "ip_address": "192.168.1.100"}}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"]["ip_address"] == "{{auto}}"  # type: ignore[typeddict-item]

    def test_filters_magic_code_header(self) -> None:
        """The code header must never reach Sentry, whatever its casing."""
        event: dict[str, Any] = {
            "request": {
                "url": "/api/verification/login",
                "headers": {
                    "x-verification-magic-code": "ABC-DEF",
                    "Authorization": "Bearer secret",
                    "Content-Type": "application/json",
                },
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        headers = result["request"]["headers"]  # type: ignore[typeddict-item, index]
        assert headers["x-verification-magic-code"] == "[Filtered]"
        assert headers["Authorization"] == "[Filtered]"
        assert headers["Content-Type"] == "application/json"

    def test_removes_cookies_and_body(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "url": "/api/magic-codes",
                "cookies": {"session": "secret"},
                "data": {"email": "user@example.com"},
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert "cookies" not in result["request"]  # type: ignore[operator]
        assert "data" not in result["request"]  # type: ignore[operator]

    def test_handles_event_without_user_or_request(self) -> None:
        event: dict[str, Any] = {"message": "Test error"}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result == {"message": "Test error"}


class TestTracesSampler:
    """Tests for dynamic trace sampling."""

    def test_never_samples_health_checks(self) -> None:
        assert _traces_sampler({"asgi_scope": {"path": "/api/health"}}) == 0.0

    def test_higher_sampling_for_verification(self) -> None:
        context: dict[str, Any] = {"asgi_scope": {"path": "/api/verification/login"}}
        assert _traces_sampler(context) == 0.5

    def test_default_sampling_rate(self) -> None:
        assert _traces_sampler({"asgi_scope": {"path": "/api/magic-codes"}}) == 0.2

    def test_respects_parent_sampling(self) -> None:
        context: dict[str, Any] = {
            "parent_sampled": True,
            "asgi_scope": {"path": "/api/magic-codes"},
        }
        assert _traces_sampler(context) == 1.0

    def test_handles_missing_asgi_scope(self) -> None:
        assert _traces_sampler({}) == 0.2


class TestInitSentry:
    """Tests for Sentry initialization."""

    def test_init_sentry_without_dsn_does_nothing(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, {}, clear=True):
                init_sentry()
            mock_init.assert_not_called()

    def test_init_sentry_uses_environment_variables(self) -> None:
        env_vars = {
            "SENTRY_DSN": "https://test@o0.ingest.sentry.io/0",
            "ENVIRONMENT": "production",
            "SENTRY_RELEASE": "1.2.3",
        }
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, env_vars):
                init_sentry()
                call_kwargs = mock_init.call_args.kwargs
                assert call_kwargs["dsn"] == env_vars["SENTRY_DSN"]
                assert call_kwargs["environment"] == "production"
                assert call_kwargs["release"] == "1.2.3"
                assert call_kwargs["send_default_pii"] is False
