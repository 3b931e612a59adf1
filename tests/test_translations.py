"""
Tests for interface translations and settings.
"""

import pytest
from decimal import Decimal

from dzbudget.config import AppSettings, GeminiSettings, StorageSettings
from dzbudget.i18n import TRANSLATIONS, is_rtl, translate
from dzbudget.models.budget import AccountType, Language, TransactionType


class TestTranslations:
    """Tests for translate and is_rtl."""

    def test_both_languages_have_the_same_keys(self):
        """Test that no string is missing from either table."""
        assert set(TRANSLATIONS[Language.FR]) == set(TRANSLATIONS[Language.AR])

    def test_translate(self):
        """Test a lookup in each language."""
        assert translate("currency", Language.FR) == "DA"
        assert translate("currency", Language.AR) == "دج"

    def test_accepts_language_code(self):
        """Test that plain codes work as well as the enum."""
        assert translate("currency", "ar") == "دج"

    def test_unknown_key_is_returned(self):
        """Test that a missing key shows up instead of crashing."""
        assert translate("no_such_key", Language.AR) == "no_such_key"

    def test_enum_labels_exist(self):
        """Test that every account and transaction type has a label."""
        for value in list(AccountType) + list(TransactionType):
            key = value.value.lower()
            assert translate(key, Language.FR) != key

    def test_corrupt_state_names_the_blob(self):
        """Test that the unreadable-data message shows which file is broken."""
        for language in Language:
            message = translate("corrupt_state", language).format(key="dz_budget_transactions")
            assert "dz_budget_transactions" in message

    def test_rtl(self):
        """Test text direction."""
        assert is_rtl(Language.AR) is True
        assert is_rtl("fr") is False


class TestSettings:
    """Tests for configuration models."""

    def test_app_defaults(self, monkeypatch, tmp_path):
        """Test the fresh-install defaults."""
        monkeypatch.chdir(tmp_path)
        settings = AppSettings()
        assert settings.default_language == "fr"
        assert settings.default_savings_goal == Decimal("0")

    def test_storage_defaults(self, monkeypatch, tmp_path):
        """Test the blob keys match the browser storage keys."""
        monkeypatch.chdir(tmp_path)
        settings = StorageSettings()
        assert settings.categories_key == "dz_budget_categories"
        assert settings.transactions_key == "dz_budget_transactions"
        assert settings.savings_goal_key == "dz_budget_savings_goal"
        assert settings.audit_log_path.name == "audit_log.jsonl"

    def test_storage_key_must_be_file_safe(self):
        """Test that keys cannot escape the data directory."""
        with pytest.raises(ValueError):
            StorageSettings(categories_key="../etc/passwd")

    def test_language_restricted(self):
        """Test that only supported languages are accepted."""
        with pytest.raises(ValueError):
            AppSettings(default_language="en")

    def test_gemini_from_environment(self, monkeypatch, tmp_path):
        """Test that the API key is read from the environment."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        settings = GeminiSettings()
        assert settings.api_key == "test-key"
        assert settings.request_timeout_seconds > 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
