"""Message catalogue for user-facing replies.

Usage:
    from music.i18n import t
    msg = t("nothing_playing", locale)
    msg = t("queued_track", locale, title="Never Gonna Give You Up")

Locales are loaded lazily from ``music/locales/*.json`` on first use;
``load_locales`` reloads them.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

log = logging.getLogger(__name__)

_locales: dict[str, dict[str, str]] = {}
_LOCALE_DIR = Path(__file__).resolve().parent / "locales"


def load_locales(locale_dir: Path = _LOCALE_DIR) -> None:
    """Load all locale JSON files from *locale_dir*."""
    _locales.clear()
    if not locale_dir.is_dir():
        log.warning("Locales directory not found: %s", locale_dir)
        return
    for path in locale_dir.glob("*.json"):
        lang = path.stem
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.warning("Failed to load locale %s: %s", lang, exc)
            continue
        _locales[lang] = data
        log.debug("Loaded locale: %s (%d keys)", lang, len(data))


def available_locales() -> list[str]:
    if not _locales:
        load_locales()
    return sorted(_locales.keys())


def t(key: str, locale: str = "en", **kwargs) -> str:
    """Translate a key for the given locale.

    Falls back to English, then to the raw key.
    Supports {variable} substitution via kwargs.
    """
    if not _locales:
        load_locales()
    strings = _locales.get(locale) or {}
    template = strings.get(key)
    if template is None:
        template = _locales.get("en", {}).get(key, key)
    try:
        return template.format(**kwargs) if kwargs else template
    except (KeyError, IndexError):
        return template
