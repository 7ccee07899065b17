"""Supported language codes and display names."""

from __future__ import annotations

AUTO_DETECT = "AUTO"

LANGUAGE_NAMES: dict[str, str] = {
    "AR": "Arabic",
    "BG": "Bulgarian",
    "CS": "Czech",
    "DA": "Danish",
    "DE": "German",
    "EL": "Greek",
    "EN": "English",
    "ES": "Spanish",
    "ET": "Estonian",
    "FI": "Finnish",
    "FR": "French",
    "HU": "Hungarian",
    "ID": "Indonesian",
    "IT": "Italian",
    "JA": "Japanese",
    "KO": "Korean",
    "LT": "Lithuanian",
    "LV": "Latvian",
    "NB": "Norwegian (bokmål)",
    "NL": "Dutch",
    "PL": "Polish",
    "PT": "Portuguese",
    "RO": "Romanian",
    "RU": "Russian",
    "SK": "Slovak",
    "SL": "Slovenian",
    "SV": "Swedish",
    "TR": "Turkish",
    "UK": "Ukrainian",
    "ZH": "Chinese",
}


def normalize_code(code: str) -> str:
    return code.strip().upper()


def is_supported(code: str) -> bool:
    return normalize_code(code) in LANGUAGE_NAMES


def get_language_name(code: str) -> str:
    """Display name for a code, or the code itself when unknown."""
    return LANGUAGE_NAMES.get(normalize_code(code), code)


def normalize_source_lang(code: str | None) -> str:
    """Maps empty values and any casing of 'auto' to AUTO_DETECT."""
    if not code or normalize_code(code) == AUTO_DETECT:
        return AUTO_DETECT
    return normalize_code(code)


def normalize_target_langs(codes: list[str]) -> list[str]:
    """
    Upper-cases and de-duplicates target codes, keeping first-seen order.

    Raises:
        ValueError: On an empty list or an unsupported code.
    """
    ordered: list[str] = []
    for code in codes:
        normalized = normalize_code(code)
        if normalized not in LANGUAGE_NAMES:
            raise ValueError(f"Unsupported target language: {code}")
        if normalized not in ordered:
            ordered.append(normalized)
    if not ordered:
        raise ValueError("At least one target language is required")
    return ordered
