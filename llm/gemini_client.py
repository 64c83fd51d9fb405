import logging
from typing import List, Optional

import requests

log = logging.getLogger(__name__)

SAFETY_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]


class LLMError(RuntimeError):
    """Every configured model failed; the message carries the last failure."""


def build_payload(system_instruction: str, contents: List[dict], cfg: dict) -> dict:
    return {
        "system_instruction": {"parts": [{"text": system_instruction}]},
        "contents": contents,
        "generationConfig": {
            "temperature": cfg["temperature"],
            "topP": cfg["top_p"],
            "topK": cfg["top_k"],
            "maxOutputTokens": cfg["max_output_tokens"],
        },
        "safetySettings": [
            {"category": c, "threshold": "BLOCK_NONE"} for c in SAFETY_CATEGORIES
        ],
    }


def _candidate_text(data: dict) -> Optional[str]:
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None


def _error_detail(response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return "Unknown error"


def call_gemini(system_instruction: str, contents: List[dict], cfg: dict) -> str:
    """
    Try each configured model in order and return the first non-empty
    reply text. Raises LLMError when the chain is exhausted.
    """
    api_key = cfg.get("api_key")
    if not api_key:
        raise LLMError("Gemini API key is not configured (set GEMINI_API_KEY)")

    payload = build_payload(system_instruction, contents, cfg)
    last_error = None

    for model in cfg["models"]:
        url = f"{cfg['base_url']}/{model}:generateContent"
        log.info("Trying model %s", model)

        try:
            response = requests.post(
                url,
                params={"key": api_key},
                json=payload,
                timeout=cfg["timeout_seconds"],
            )
            response.raise_for_status()
            text = _candidate_text(response.json())
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            detail = _error_detail(e.response) if e.response is not None else str(e)
            last_error = f"{model}: HTTP {status} - {detail}"
            log.warning("Model %s failed: %s", model, last_error)
            continue
        except requests.RequestException as e:
            last_error = f"{model}: {e}"
            log.warning("Model %s failed: %s", model, e)
            continue
        except ValueError as e:
            last_error = f"{model}: invalid JSON body ({e})"
            log.warning("Model %s failed: %s", model, last_error)
            continue

        if not text:
            last_error = f"{model}: Empty response"
            log.warning("Model %s returned an empty response", model)
            continue

        log.info("Model %s responded", model)
        return text

    raise LLMError(last_error or "All Gemini models failed")
