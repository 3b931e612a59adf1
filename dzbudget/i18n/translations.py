"""
Interface strings for the two supported languages.

Every user-facing string is looked up by key. A key missing from the
Arabic table falls back to French, and a key missing everywhere is
returned as-is so a typo shows up on screen instead of crashing a page.
"""

from typing import Union

from dzbudget.models.budget import Language


TRANSLATIONS: dict[Language, dict[str, str]] = {
    Language.FR: {
        "app_title": "DzBudget",
        "switch_language": "العربية",
        "dashboard": "Tableau de bord",
        "transactions": "Transactions",
        "settings": "Paramètres",
        "currency": "DA",
        "total_balance": "Solde total",
        "cash": "Liquide",
        "salary": "Compte salaire",
        "savings": "Épargne",
        "monthly_spending": "Dépenses du mois",
        "monthly_income": "Revenus du mois",
        "limit_usage": "du budget mensuel utilisé",
        "health_score": "Santé financière",
        "savings_progress": "Objectif d'épargne",
        "insights": "Conseils IA",
        "get_insights": "Analyser mon budget",
        "loading": "Analyse en cours...",
        "spending_by_category": "Dépenses par catégorie",
        "budget_vs_actual": "Budget vs Réel",
        "savings_goal": "Objectif",
        "over_limit": "Limite dépassée",
        "no_spending": "Aucune dépense ce mois-ci",
        "add_transaction": "Ajouter une transaction",
        "type": "Type",
        "expense": "Dépense",
        "income": "Revenu",
        "description": "Description",
        "amount": "Montant",
        "category": "Catégorie",
        "account": "Compte",
        "save": "Enregistrer",
        "delete": "Supprimer",
        "saved": "Transaction enregistrée",
        "recent_transactions": "Transactions récentes",
        "no_transactions": "Aucune transaction pour le moment",
        "savings_account": "Compte épargne",
        "set_savings_goal": "Définir l'objectif d'épargne",
        "category_limits": "Limites mensuelles par catégorie",
        "monthly_limit": "Limite mensuelle",
        "configuration": "Configuration",
        "service_ok": "configuré",
        "service_missing": "non configuré",
        "history": "Historique",
        "storage_error": "Impossible d'enregistrer les données sur le disque.",
        "corrupt_state": "Les données « {key} » sont illisibles. Corrigez ou supprimez ce fichier puis rechargez la page.",
        "reset_data": "Réinitialiser les données",
        # Insight fallbacks
        "insight_empty": "Impossible de générer des analyses.",
        "insight_error": "Erreur de connexion avec l'IA.",
        "insight_timeout": "L'IA met trop de temps à répondre. Réessayez plus tard.",
        "insight_unavailable": "Les conseils IA ne sont pas configurés (clé API manquante).",
        "insight_busy": "Une analyse est déjà en cours.",
        # Validation issues
        "issue_description_missing": "La description est obligatoire.",
        "issue_description_too_long": "La description est trop longue.",
        "issue_amount_invalid_value": "Le montant doit être un nombre.",
        "issue_amount_non_positive": "Le montant doit être supérieur à zéro.",
        "issue_amount_suspicious_value": "Ce montant semble très élevé, vérifiez-le.",
        "issue_category_id_missing": "Choisissez une catégorie pour la dépense.",
        "issue_category_id_unknown_category": "Cette catégorie n'existe pas.",
    },
    Language.AR: {
        "app_title": "DzBudget",
        "switch_language": "Français",
        "dashboard": "لوحة القيادة",
        "transactions": "المعاملات",
        "settings": "الإعدادات",
        "currency": "دج",
        "total_balance": "الرصيد الإجمالي",
        "cash": "نقداً",
        "salary": "حساب الراتب",
        "savings": "الادخار",
        "monthly_spending": "مصاريف الشهر",
        "monthly_income": "مداخيل الشهر",
        "limit_usage": "من الميزانية الشهرية مستعملة",
        "health_score": "الصحة المالية",
        "savings_progress": "هدف الادخار",
        "insights": "نصائح الذكاء الاصطناعي",
        "get_insights": "حلل ميزانيتي",
        "loading": "جاري التحليل...",
        "spending_by_category": "المصاريف حسب الفئة",
        "budget_vs_actual": "الميزانية مقابل الفعلي",
        "savings_goal": "هدف",
        "over_limit": "تم تجاوز الحد",
        "no_spending": "لا توجد مصاريف هذا الشهر",
        "add_transaction": "إضافة معاملة",
        "type": "النوع",
        "expense": "مصروف",
        "income": "دخل",
        "description": "الوصف",
        "amount": "المبلغ",
        "category": "الفئة",
        "account": "الحساب",
        "save": "حفظ",
        "delete": "حذف",
        "saved": "تم حفظ المعاملة",
        "recent_transactions": "المعاملات الأخيرة",
        "no_transactions": "لا توجد معاملات حالياً",
        "savings_account": "حساب الادخار",
        "set_savings_goal": "تحديد هدف الادخار",
        "category_limits": "الحدود الشهرية لكل فئة",
        "monthly_limit": "الحد الشهري",
        "configuration": "الإعداد",
        "service_ok": "مُعد",
        "service_missing": "غير مُعد",
        "history": "السجل",
        "storage_error": "تعذر حفظ البيانات على القرص.",
        "corrupt_state": "تعذرت قراءة البيانات « {key} ». صحح هذا الملف أو احذفه ثم أعد تحميل الصفحة.",
        "reset_data": "إعادة تعيين البيانات",
        "insight_empty": "تعذر إنشاء التحليلات.",
        "insight_error": "خطأ في الاتصال بالذكاء الاصطناعي.",
        "insight_timeout": "الذكاء الاصطناعي يستغرق وقتاً طويلاً. حاول لاحقاً.",
        "insight_unavailable": "نصائح الذكاء الاصطناعي غير مُعدة (مفتاح API مفقود).",
        "insight_busy": "هناك تحليل قيد التنفيذ.",
        "issue_description_missing": "الوصف إجباري.",
        "issue_description_too_long": "الوصف طويل جداً.",
        "issue_amount_invalid_value": "يجب أن يكون المبلغ رقماً.",
        "issue_amount_non_positive": "يجب أن يكون المبلغ أكبر من صفر.",
        "issue_amount_suspicious_value": "هذا المبلغ يبدو مرتفعاً جداً، تحقق منه.",
        "issue_category_id_missing": "اختر فئة للمصروف.",
        "issue_category_id_unknown_category": "هذه الفئة غير موجودة.",
    },
}

RTL_LANGUAGES = frozenset({Language.AR})


def translate(key: str, language: Union[Language, str] = Language.FR) -> str:
    """Look up an interface string."""
    table = TRANSLATIONS.get(Language(language), {})
    if key in table:
        return table[key]
    return TRANSLATIONS[Language.FR].get(key, key)


def is_rtl(language: Union[Language, str]) -> bool:
    return Language(language) in RTL_LANGUAGES
