"""
Fallback phrases substituted for chunks whose translation could not be
obtained. Callers plug any ``FallbackProvider`` into the pipeline; the demo
phrases below are the production default.
"""

from __future__ import annotations

from typing import Callable

FallbackProvider = Callable[[str], str]

DEMO_FALLBACK_TEXTS: dict[str, str] = {
    "BG": "Това е пример за преведен текст за демонстриране на функционалността на системата за превод на документи.",
    "CS": "Toto je příklad přeloženého textu pro demonstraci funkčnosti systému překladu dokumentů.",
    "PL": "To jest przykład przetłumaczonego tekstu w celu zademonstrowania funkcjonalności systemu tłumaczenia dokumentów.",
    "RU": "Это пример переведенного текста для демонстрации функциональности системы перевода документов.",
    "SK": "Toto je príklad preloženého textu na demonštráciu funkčnosti systému prekladu dokumentov.",
    "SL": "To je primer prevedenega besedila za predstavitev funkcionalnosti sistema za prevajanje dokumentov.",
    "UK": "Це приклад перекладеного тексту для демонстрації функціональності системи перекладу документів.",
    "DE": "Dies ist ein Beispiel für übersetzten Text zur Demonstration der Funktionalität des Dokumentenübersetzungssystems.",
    "EN": "This is an example of translated text to demonstrate the functionality of the document translation system.",
    "NL": "Dit is een voorbeeld van vertaalde tekst ter demonstratie van de functionaliteit van het documentvertaalsysteem.",
    "SV": "Detta är ett exempel på översatt text för att demonstrera funktionaliteten hos dokumentöversättningssystemet.",
    "DA": "Dette er et eksempel på oversat tekst for at demonstrere funktionaliteten af dokumentoversættelsessystemet.",
    "NB": "Dette er et eksempel på oversatt tekst for å demonstrere funksjonaliteten til dokumentoversettelsessystemet.",
    "FR": "Ceci est un exemple de texte traduit pour démontrer la fonctionnalité du système de traduction de documents.",
    "ES": "Este es un ejemplo de texto traducido para demostrar la funcionalidad del sistema de traducción de documentos.",
    "IT": "Questo è un esempio di testo tradotto per dimostrare la funzionalità del sistema di traduzione dei documenti.",
    "PT": "Este é um exemplo de texto traduzido para demonstrar a funcionalidade do sistema de tradução de documentos.",
    "RO": "Acesta este un exemplu de text tradus pentru a demonstra funcționalitatea sistemului de traducere a documentelor.",
    "EL": "Αυτό είναι ένα παράδειγμα μεταφρασμένου κειμένου για την επίδειξη της λειτουργικότητας του συστήματος μετάφρασης εγγράφων.",
    "HU": "Ez egy példa lefordított szövegre a dokumentumfordító rendszer funkcionalitásának bemutatására.",
    "FI": "Tämä on esimerkki käännetystä tekstistä dokumenttien käännösjärjestelmän toiminnallisuuden esittelemiseksi.",
    "ET": "See on näide tõlgitud tekstist, et näidata dokumentide tõlkesüsteemi funktsionaalsust.",
    "LT": "Tai yra išversto teksto pavyzdys, skirtas pademonstruoti dokumentų vertimo sistemos funkcionalumą.",
    "LV": "Šis ir tulkota teksta piemērs, lai demonstrētu dokumentu tulkošanas sistēmas funkcionalitāti.",
    "ZH": "这是翻译文本的示例，用于演示文档翻译系统的功能。",
    "JA": "これは、文書翻訳システムの機能を実証するための翻訳されたテキストの例です。",
    "KO": "이것은 문서 번역 시스템의 기능을 보여주기 위한 번역된 텍스트의 예입니다.",
    "AR": "هذا مثال على النص المترجم لتوضيح وظائف نظام ترجمة المستندات.",
    "TR": "Bu, belge çeviri sisteminin işlevselliğini göstermek için çevrilmiş metnin bir örneğidir.",
    "ID": "Ini adalah contoh teks yang diterjemahkan untuk mendemonstrasikan fungsionalitas sistem terjemahan dokumen.",
}


def demo_fallback_text(target_lang: str) -> str:
    """Returns the demo phrase for a language, English when unknown."""
    return DEMO_FALLBACK_TEXTS.get(target_lang.strip().upper(), DEMO_FALLBACK_TEXTS["EN"])


def placeholder_fallback(target_lang: str) -> str:
    """Neutral marker used when demo phrases are not wanted."""
    return f"[translation unavailable: {target_lang.strip().upper()}]"
