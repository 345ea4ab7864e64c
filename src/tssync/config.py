from dataclasses import dataclass, field
import logging
import os
from typing import Any

import yaml

from tssync.errors import ConfigurationError
from tssync.merge import MergePolicy
from tssync.plurals import SINGLE, PluralRules, parse_plural_rules
from tssync.similarity import get_strategy

logger = logging.getLogger(__name__)

DEFAULT_LOGGING = {
    "level": "INFO",
    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    "datefmt": "%Y-%m-%d %H:%M:%S",
}


@dataclass(frozen=True)
class LocalePolicy:
    locale: str
    case_insensitive: bool = False
    plurals: PluralRules = SINGLE


@dataclass
class Config:
    logging: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_LOGGING))
    merge_policy: MergePolicy = field(default_factory=MergePolicy)
    locales: dict[str, LocalePolicy] = field(default_factory=dict)

    def locale_policy(self, locale: str) -> LocalePolicy:
        """Policy for ``locale``, falling back to its language (fr_FR -> fr)."""
        if locale in self.locales:
            return self.locales[locale]
        language = locale.replace("-", "_").split("_")[0]
        if language in self.locales:
            return self.locales[language]
        logger.debug(f"No locale policy for {locale}, using a single plural form")
        return LocalePolicy(locale)


def _read_yaml(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except FileNotFoundError:
        logger.warning(f"Configuration file {path} not found, using defaults")
        return {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Cannot parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


def parse_merge_policy(raw: dict[str, Any] | None) -> MergePolicy:
    raw = raw or {}
    similarity = get_strategy(str(raw.get("similarity", "sequence")))
    return MergePolicy(fuzzy_threshold=raw.get("fuzzy_threshold"), similarity=similarity)


def parse_locales(raw: dict[str, Any] | None) -> dict[str, LocalePolicy]:
    locales = {}
    for locale, settings in (raw or {}).items():
        settings = settings or {}
        if not isinstance(settings, dict):
            raise ConfigurationError(f"Settings for locale {locale} must be a mapping")
        locales[str(locale)] = LocalePolicy(
            str(locale),
            case_insensitive=bool(settings.get("case_insensitive", False)),
            plurals=parse_plural_rules(settings.get("plurals"), str(locale)),
        )
    return locales


def load_config(config_folder: str) -> Config:
    config_folder_path = os.path.abspath(config_folder)
    settings = _read_yaml(os.path.join(config_folder_path, "config.yml"))
    locales = _read_yaml(os.path.join(config_folder_path, "locales.yml"))

    logging_cfg = dict(DEFAULT_LOGGING)
    logging_cfg.update(settings.get("logging") or {})
    return Config(
        logging=logging_cfg,
        merge_policy=parse_merge_policy(settings.get("merge")),
        locales=parse_locales(locales.get("locales", locales)),
    )


def configure_logging(config: Config) -> None:
    level = logging.getLevelName(str(config.logging["level"]).upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown logging level {config.logging['level']!r}")
    logging.basicConfig(
        level=level,
        format=config.logging["format"],
        datefmt=config.logging["datefmt"],
    )
