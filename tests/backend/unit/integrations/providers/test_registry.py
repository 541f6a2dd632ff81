"""Tests for building providers from configured credentials."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from integrations.providers import GoogleProvider, MistralProvider, OpenAIProvider, build_providers
from integrations.providers.registry import PROVIDER_CONFIGS


class TestBuildProviders:
    def test_only_configured_providers_are_built(self, mock_settings_for_ci: MagicMock) -> None:
        mock_settings_for_ci.openai_api_key = "sk-test"
        mock_settings_for_ci.google_api_key = None
        mock_settings_for_ci.mistral_api_key = None

        with patch("integrations.providers.registry.create_openai_client") as mock_openai:
            providers = build_providers(mock_settings_for_ci)

        assert set(providers) == {"openai"}
        assert isinstance(providers["openai"], OpenAIProvider)
        mock_openai.assert_called_once()
        assert mock_openai.call_args.args[0] == "sk-test"

    def test_all_providers(self, mock_settings_for_ci: MagicMock) -> None:
        mock_settings_for_ci.google_api_key = "g-key"
        mock_settings_for_ci.mistral_api_key = "m-key"

        with patch("integrations.providers.registry.create_openai_client") as mock_openai:
            providers = build_providers(mock_settings_for_ci)

        assert set(providers) == {"openai", "google", "mistral"}
        assert isinstance(providers["google"], GoogleProvider)
        assert isinstance(providers["mistral"], MistralProvider)
        assert providers["google"].api_key == "g-key"
        # Mistral goes through the OpenAI SDK pointed at its own endpoint
        mistral_call = next(c for c in mock_openai.call_args_list if c.args[0] == "m-key")
        assert mistral_call.kwargs["base_url"] == "https://api.mistral.ai/v1"

    def test_no_credentials(self, mock_settings_for_ci: MagicMock) -> None:
        mock_settings_for_ci.openai_api_key = None

        assert build_providers(mock_settings_for_ci) == {}

    def test_http_logging_flag_is_forwarded(self, mock_settings_for_ci: MagicMock) -> None:
        mock_settings_for_ci.http_request_logging = True

        with (
            patch("integrations.providers.registry.create_http_client") as mock_http,
            patch("integrations.providers.registry.create_openai_client"),
        ):
            build_providers(mock_settings_for_ci)

        mock_http.assert_called_once_with(enable_logging=True)

    def test_config_keys_match_settings_fields(self) -> None:
        assert {c["env_key"] for c in PROVIDER_CONFIGS.values()} == {
            "openai_api_key",
            "google_api_key",
            "mistral_api_key",
        }
