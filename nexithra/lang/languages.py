from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppLanguage:
    code: str
    label: str
    bcp47: str
    english_name: str


APP_LANGUAGES: tuple[AppLanguage, ...] = (
    AppLanguage("en", "English", "en-US", "English"),
    AppLanguage("es", "Español (Spanish)", "es-ES", "Spanish"),
    AppLanguage("hi", "हिन्दी (Hindi)", "hi-IN", "Hindi"),
    AppLanguage("ja", "日本語 (Japanese)", "ja-JP", "Japanese"),
    AppLanguage("fr", "Français (French)", "fr-FR", "French"),
    AppLanguage("de", "Deutsch (German)", "de-DE", "German"),
    AppLanguage("ru", "Русский (Russian)", "ru-RU", "Russian"),
    AppLanguage("pt", "Português (Portuguese)", "pt-BR", "Portuguese"),
    AppLanguage("it", "Italiano (Italian)", "it-IT", "Italian"),
    AppLanguage("zh", "中文 (Chinese)", "zh-CN", "Chinese"),
    AppLanguage("ar", "العربية (Arabic)", "ar-SA", "Arabic"),
    AppLanguage("ko", "한국어 (Korean)", "ko-KR", "Korean"),
    AppLanguage("tr", "Türkçe (Turkish)", "tr-TR", "Turkish"),
    AppLanguage("nl", "Nederlands (Dutch)", "nl-NL", "Dutch"),
    AppLanguage("sv", "Svenska (Swedish)", "sv-SE", "Swedish"),
    AppLanguage("pl", "Polski (Polish)", "pl-PL", "Polish"),
    AppLanguage("id", "Bahasa Indonesia", "id-ID", "Indonesian"),
    AppLanguage("vi", "Tiếng Việt (Vietnamese)", "vi-VN", "Vietnamese"),
    AppLanguage("th", "ไทย (Thai)", "th-TH", "Thai"),
    AppLanguage("el", "Ελληνικά (Greek)", "el-GR", "Greek"),
    AppLanguage("he", "עברית (Hebrew)", "he-IL", "Hebrew"),
    AppLanguage("bn", "বাংলা (Bengali)", "bn-IN", "Bengali"),
    AppLanguage("mr", "मराठी (Marathi)", "mr-IN", "Marathi"),
    AppLanguage("ta", "தமிழ் (Tamil)", "ta-IN", "Tamil"),
    AppLanguage("te", "తెలుగు (Telugu)", "te-IN", "Telugu"),
    AppLanguage("gu", "ગુજરાતી (Gujarati)", "gu-IN", "Gujarati"),
    AppLanguage("pa", "ਪੰਜਾਬੀ (Punjabi)", "pa-IN", "Punjabi"),
    AppLanguage("ur", "اردو (Urdu)", "ur-PK", "Urdu"),
    AppLanguage("uk", "Українська (Ukrainian)", "uk-UA", "Ukrainian"),
)

DEFAULT_LANGUAGE = APP_LANGUAGES[0]

_BY_CODE = {language.code: language for language in APP_LANGUAGES}


def by_code(code: str | None) -> AppLanguage:
    """Return the language for an app code, defaulting to English."""
    if not code:
        return DEFAULT_LANGUAGE
    return _BY_CODE.get(code, DEFAULT_LANGUAGE)


def match_language(name: str) -> AppLanguage | None:
    """Find a language whose label or English name contains ``name``."""
    needle = name.strip().lower()
    if not needle:
        return None
    for language in APP_LANGUAGES:
        if needle in language.label.lower() or needle in language.english_name.lower():
            return language
    return None


__all__ = ["AppLanguage", "APP_LANGUAGES", "DEFAULT_LANGUAGE", "by_code", "match_language"]
