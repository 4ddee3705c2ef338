"""Static registry of languages the translator accepts."""

from __future__ import annotations

from typing import Final

from ailang.models.translation_models import Language

__all__: list[str] = ["RTL_LANGUAGE_CODES", "SUPPORTED_LANGUAGES", "SUPPORTED_LANGUAGE_CODES"]

SUPPORTED_LANGUAGES: Final[tuple[Language, ...]] = (
    Language("en", "English", "English"),
    Language("hi", "Hindi", "हिन्दी"),
    Language("es", "Spanish", "Español"),
    Language("fr", "French", "Français"),
    Language("de", "German", "Deutsch"),
    Language("it", "Italian", "Italiano"),
    Language("pt", "Portuguese", "Português"),
    Language("ru", "Russian", "Русский"),
    Language("ja", "Japanese", "日本語"),
    Language("ko", "Korean", "한국어"),
    Language("zh", "Chinese", "中文"),
    Language("ar", "Arabic", "العربية"),
    Language("tr", "Turkish", "Türkçe"),
    Language("nl", "Dutch", "Nederlands"),
    Language("pl", "Polish", "Polski"),
    Language("sv", "Swedish", "Svenska"),
    Language("th", "Thai", "ไทย"),
    Language("vi", "Vietnamese", "Tiếng Việt"),
    Language("id", "Indonesian", "Bahasa Indonesia"),
    Language("ms", "Malay", "Bahasa Melayu"),
    Language("fil", "Filipino", "Filipino"),
    Language("bn", "Bengali", "বাংলা"),
    Language("ta", "Tamil", "தமிழ்"),
    Language("te", "Telugu", "తెలుగు"),
    Language("mr", "Marathi", "मराठी"),
    Language("gu", "Gujarati", "ગુજરાતી"),
    Language("kn", "Kannada", "ಕನ್ನಡ"),
    Language("ml", "Malayalam", "മലയാളം"),
    Language("pa", "Punjabi", "ਪੰਜਾਬੀ"),
    Language("ur", "Urdu", "اردو"),
    Language("el", "Greek", "Ελληνικά"),
    Language("cs", "Czech", "Čeština"),
    Language("ro", "Romanian", "Română"),
    Language("hu", "Hungarian", "Magyar"),
    Language("fi", "Finnish", "Suomi"),
    Language("no", "Norwegian", "Norsk"),
    Language("da", "Danish", "Dansk"),
    Language("uk", "Ukrainian", "Українська"),
    Language("he", "Hebrew", "עברית"),
    Language("fa", "Persian", "فارسی"),
    Language("sw", "Swahili", "Kiswahili"),
    Language("af", "Afrikaans", "Afrikaans"),
    Language("bg", "Bulgarian", "Български"),
    Language("ca", "Catalan", "Català"),
    Language("hr", "Croatian", "Hrvatski"),
    Language("et", "Estonian", "Eesti"),
    Language("lv", "Latvian", "Latviešu"),
    Language("lt", "Lithuanian", "Lietuvių"),
    Language("sk", "Slovak", "Slovenčina"),
    Language("sl", "Slovenian", "Slovenščina"),
)

SUPPORTED_LANGUAGE_CODES: Final[frozenset[str]] = frozenset(lang.code for lang in SUPPORTED_LANGUAGES)

# yi, ps, sd and ug are right-to-left but not in the supported list
RTL_LANGUAGE_CODES: Final[frozenset[str]] = frozenset({"ar", "he", "fa", "ur", "yi", "ps", "sd", "ug"})
