"""Localized interface strings (French and Arabic)."""

from dzbudget.i18n.translations import TRANSLATIONS, is_rtl, translate

__all__ = ["TRANSLATIONS", "is_rtl", "translate"]
