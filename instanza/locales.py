"""
INSTANZA Locales - Status lines and style labels for the supported languages.
"""

from typing import Dict

LANGUAGES = ('en', 'fr', 'es', 'it', 'de', 'zh', 'nl')

STYLES = ('breezy', 'funny', 'serious', 'inspiring', 'philosophic', 'literary', 'fortune', 'positive')

DEFAULT_LANGUAGE = 'en'
DEFAULT_STYLE = 'inspiring'

LANGUAGE_NAMES = {
    'en': "ENGLISH",
    'fr': "FRENCH",
    'es': "SPANISH",
    'it': "ITALIAN",
    'de': "GERMAN",
    'zh': "CHINESE (SIMPLIFIED)",
    'nl': "DUTCH",
}

MESSAGES: Dict[str, Dict[str, str]] = {
    'en': {
        'analyzing': "Analyzing mood...",
        'inking': "Inking edges...",
        'rescribing': "Rescribing...",
        'failed': "Something went wrong with the chemistry. Try again.",
        'regenerate_failed': "Failed to regenerate caption.",
    },
    'nl': {
        'analyzing': "Sfeer analyseren...",
        'inking': "Randen inkt geven...",
        'rescribing': "Herschrijven...",
        'failed': "Er ging iets mis met de chemie. Probeer het opnieuw.",
        'regenerate_failed': "Onderschrift vernieuwen mislukt.",
    },
    'fr': {
        'analyzing': "Analyse de l'ambiance...",
        'inking': "Encrage des bords...",
        'rescribing': "Réécriture...",
        'failed': "La chimie a mal tourné. Réessayez.",
        'regenerate_failed': "Impossible de régénérer la légende.",
    },
    'es': {
        'analyzing': "Analizando el ambiente...",
        'inking': "Entintando bordes...",
        'rescribing': "Reescribiendo...",
        'failed': "Algo salió mal con la química. Inténtalo de nuevo.",
        'regenerate_failed': "No se pudo regenerar el subtítulo.",
    },
    'it': {
        'analyzing': "Analisi dell'atmosfera...",
        'inking': "Inchiostrazione bordi...",
        'rescribing': "Riscrittura...",
        'failed': "Qualcosa è andato storto con la chimica. Riprova.",
        'regenerate_failed': "Impossibile rigenerare la didascalia.",
    },
    'de': {
        'analyzing': "Stimmung analysieren...",
        'inking': "Kanten einfärben...",
        'rescribing': "Umschreiben...",
        'failed': "Bei der Entwicklung ist etwas schiefgelaufen. Versuch es noch einmal.",
        'regenerate_failed': "Bildunterschrift konnte nicht erneuert werden.",
    },
    'zh': {
        'analyzing': "正在分析氛围...",
        'inking': "正在填充边缘...",
        'rescribing': "正在重新编写...",
        'failed': "冲洗出了点问题，请重试。",
        'regenerate_failed': "重新生成字幕失败。",
    },
}

STYLE_LABELS: Dict[str, Dict[str, str]] = {
    'en': {
        'breezy': "Breezy", 'funny': "Funny", 'serious': "Serious", 'inspiring': "Inspiring",
        'philosophic': "Philosophic", 'literary': "Literary", 'fortune': "Fortune", 'positive': "Positive",
    },
    'nl': {
        'breezy': "Luchtig", 'funny': "Grappig", 'serious': "Serieus", 'inspiring': "Inspirerend",
        'philosophic': "Filosofisch", 'literary': "Literair", 'fortune': "Gelukskoekje", 'positive': "Positief",
    },
    'fr': {
        'breezy': "Léger", 'funny': "Drôle", 'serious': "Sérieux", 'inspiring': "Inspirant",
        'philosophic': "Philosophique", 'literary': "Littéraire", 'fortune': "Fortune", 'positive': "Positif",
    },
    'es': {
        'breezy': "Ligero", 'funny': "Divertido", 'serious': "Serio", 'inspiring': "Inspirador",
        'philosophic': "Filosófico", 'literary': "Literario", 'fortune': "Fortuna", 'positive': "Positivo",
    },
    'it': {
        'breezy': "Leggero", 'funny': "Divertente", 'serious': "Serio", 'inspiring': "Ispiratore",
        'philosophic': "Filosofico", 'literary': "Letterario", 'fortune': "Fortuna", 'positive': "Positivo",
    },
    'de': {
        'breezy': "Locker", 'funny': "Lustig", 'serious': "Ernst", 'inspiring': "Inspirierend",
        'philosophic': "Philosophisch", 'literary': "Literarisch", 'fortune': "Glückskeks", 'positive': "Positiv",
    },
    'zh': {
        'breezy': "轻盈", 'funny': "幽默", 'serious': "严肃", 'inspiring': "鼓舞人心",
        'philosophic': "富有哲理", 'literary': "文学气息", 'fortune': "幸运饼干", 'positive': "积极向上",
    },
}


def message(language: str, key: str) -> str:
    """Localized status message, falling back to English."""
    return MESSAGES.get(language, MESSAGES[DEFAULT_LANGUAGE])[key]


def style_label(language: str, style: str) -> str:
    """Localized display label of a caption style."""
    return STYLE_LABELS.get(language, STYLE_LABELS[DEFAULT_LANGUAGE]).get(style, style)
