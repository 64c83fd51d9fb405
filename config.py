# chatbot/config.py
import copy
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

import yaml

PROJECT_ROOT = Path(__file__).resolve().parent
CONFIG_PATH = PROJECT_ROOT / "config.yaml"

DEFAULTS = {
    "assistant": {
        "mode": "local",
        "history_limit": 40,
    },
    "gemini": {
        "api_key": None,
        "base_url": "https://generativelanguage.googleapis.com/v1beta/models",
        "models": [
            "gemini-2.0-flash",
            "gemini-2.5-flash",
            "gemini-2.5-pro",
            "gemini-1.5-flash",
        ],
        "timeout_seconds": 30,
        "temperature": 0.7,
        "top_p": 0.9,
        "top_k": 40,
        "max_output_tokens": 2048,
    },
    "roster": {
        "size": 50,
        "seed": 42,
    },
    "logging": {
        "level": "INFO",
    },
}


def _merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> Dict:
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


def build_config(raw: Optional[Dict] = None, environ: Optional[Dict] = None) -> Dict:
    """
    Merge a raw config dict over the defaults, then apply env overrides.
    """
    environ = os.environ if environ is None else environ
    cfg = _merge(DEFAULTS, raw or {})

    if environ.get("GEMINI_API_KEY"):
        cfg["gemini"]["api_key"] = environ["GEMINI_API_KEY"]
    if environ.get("ASSISTANT_MODE"):
        cfg["assistant"]["mode"] = environ["ASSISTANT_MODE"].strip().lower()
    if environ.get("LOG_LEVEL"):
        cfg["logging"]["level"] = environ["LOG_LEVEL"].strip().upper()

    if cfg["assistant"]["mode"] not in {"local", "remote"}:
        raise ValueError(
            f"Unsupported assistant mode: {cfg['assistant']['mode']}. Use 'local' or 'remote'."
        )

    return cfg


@lru_cache(maxsize=1)
def load_config() -> Dict:
    path = Path(os.getenv("CHATBOT_CONFIG") or CONFIG_PATH)
    return build_config(_read_yaml(path))


def configure_logging(cfg: Dict) -> None:
    logging.basicConfig(
        level=getattr(logging, str(cfg["logging"]["level"]).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
