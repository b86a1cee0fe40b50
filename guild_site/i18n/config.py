"""
Translation setup

English and Norwegian bundles are loaded once at startup into an I18n
instance that travels in the application context. The active language is
read from the persisted "language" value first, then from the browser's
Accept-Language header, then falls back to English.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, MutableMapping, Optional

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"
FALLBACK_LANGUAGE = "en"
LANGUAGE_STORAGE_KEY = "language"
DETECTION_ORDER = ("storage", "navigator")

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Browsers send nb/nn for Norwegian
_LANGUAGE_ALIASES = {"nb": "no", "nn": "no"}


def parse_accept_language(header: Optional[str]) -> Iterable[str]:
    """Language codes from an Accept-Language header, best first"""
    if not header:
        return []
    weighted = []
    for index, part in enumerate(header.split(",")):
        pieces = part.strip().split(";")
        code = pieces[0].strip().lower()
        if not code or code == "*":
            continue
        quality = 1.0
        for param in pieces[1:]:
            key, _, value = param.strip().partition("=")
            if key == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        weighted.append((-quality, index, code))
    return [code for _, _, code in sorted(weighted)]


class I18n:
    """Translation lookup over in-memory resource bundles"""

    def __init__(self, resources: Dict[str, Dict[str, Any]], fallback_language: str = FALLBACK_LANGUAGE):
        self.resources = resources
        self.fallback_language = fallback_language

    @property
    def languages(self):
        return sorted(self.resources)

    def normalize(self, code: Optional[str]) -> Optional[str]:
        """Map "en-GB", "nb-NO" and friends onto a loaded bundle, None if unsupported"""
        if not code:
            return None
        base = code.lower().replace("_", "-").split("-")[0]
        base = _LANGUAGE_ALIASES.get(base, base)
        return base if base in self.resources else None

    def detect_language(self, stored: Optional[str] = None, accept_language: Optional[str] = None) -> str:
        """Persisted choice first, then browser preference, then the fallback"""
        for source in DETECTION_ORDER:
            if source == "storage":
                language = self.normalize(stored)
                if language:
                    return language
            elif source == "navigator":
                for code in parse_accept_language(accept_language):
                    language = self.normalize(code)
                    if language:
                        return language
        return self.fallback_language

    def change_language(self, language: str, storage: MutableMapping[str, str]) -> str:
        """Persist a supported language choice and return it"""
        normalized = self.normalize(language)
        if normalized is None:
            raise ValueError(f"Unsupported language: {language}")
        storage[LANGUAGE_STORAGE_KEY] = normalized
        return normalized

    def _lookup(self, language: str, key: str) -> Optional[str]:
        node: Any = self.resources.get(language, {})
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None

    def t(self, key: str, default: Optional[str] = None, language: Optional[str] = None, **values) -> str:
        """
        Translate a dotted key

        Falls back to the fallback language, then to the given default, then
        to the key itself. {{name}} placeholders are filled from values.
        """
        text = self._lookup(language or self.fallback_language, key)
        if text is None and language != self.fallback_language:
            text = self._lookup(self.fallback_language, key)
        if text is None:
            text = default if default is not None else key
        if values:
            text = _PLACEHOLDER.sub(lambda m: str(values.get(m.group(1), m.group(0))), text)
        return text

    def translator(self, language: str) -> Callable[..., str]:
        """t() bound to one language, for templates"""
        def translate(key: str, default: Optional[str] = None, **values) -> str:
            return self.t(key, default, language=language, **values)
        return translate


def load_resources(locales_dir: Path = LOCALES_DIR) -> Dict[str, Dict[str, Any]]:
    """Read every <lang>.json bundle in the directory"""
    resources = {}
    for path in sorted(locales_dir.glob("*.json")):
        with path.open(encoding="utf-8") as f:
            resources[path.stem] = json.load(f)
    logger.debug(f"Loaded translation bundles: {', '.join(resources)}")
    return resources


def init_i18n(
    resources: Optional[Dict[str, Dict[str, Any]]] = None,
    fallback_language: str = FALLBACK_LANGUAGE
) -> I18n:
    """Build the translator once at startup"""
    resources = resources if resources is not None else load_resources()
    if fallback_language not in resources:
        raise ValueError(f"Fallback language bundle '{fallback_language}' is missing")
    return I18n(resources, fallback_language)
