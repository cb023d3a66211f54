"""
Kindroid Bots - Configuration
API keys, backend URL, and bot identities.
"""

import os
import json
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

import logger as log

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
BOTS_FILE = os.path.join(BASE_DIR, "bots.json")


# --- Kindroid Backend ---

KINDROID_INFER_URL = os.getenv('KINDROID_INFER_URL', 'https://api.kindroid.ai/v1/discord-bot')
KINDROID_API_KEY = os.getenv('KINDROID_API_KEY')
API_TIMEOUT = float(os.getenv('API_TIMEOUT', '60'))

# --- Monitoring ---

METRICS_PORT = int(os.getenv('METRICS_PORT', '0'))  # 0 = metrics server disabled


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Interpret an env-style flag ("true", "1", "yes")."""
    if value is None or value == "":
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class BotConfig:
    """One configured bot identity."""
    id: str
    token: str
    share_code: str
    enable_filter: bool = False


def _load_from_file(path: str) -> List[BotConfig]:
    """Load bot identities from bots.json.

    Tokens and share codes are read from the env vars each entry names,
    so the file itself never holds secrets.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        log.warn(f"Invalid bots.json: {e}")
        return []

    bots = []
    for i, entry in enumerate(data.get("bots", [])):
        bot_id = str(entry.get("id") or f"bot{i + 1}")

        token_env = entry.get("token_env")
        token = os.getenv(token_env) if token_env else None
        if not token:
            log.warn(f"Token env var '{token_env}' not set, skipping {bot_id}")
            continue

        share_code = entry.get("share_code")
        if not share_code and entry.get("share_code_env"):
            share_code = os.getenv(entry["share_code_env"])
        if not share_code:
            log.warn(f"No share code for {bot_id}, skipping")
            continue

        enable_filter = entry.get("enable_filter", False)
        if isinstance(enable_filter, str):
            enable_filter = _parse_bool(enable_filter)

        bots.append(BotConfig(
            id=bot_id,
            token=token,
            share_code=share_code,
            enable_filter=bool(enable_filter)
        ))
    return bots


def _load_from_env() -> List[BotConfig]:
    """Load numbered bot identities: BOT_TOKEN_1, SHARED_AI_CODE_1, ENABLE_FILTER_1, ..."""
    bots = []
    n = 1
    while os.getenv(f"BOT_TOKEN_{n}"):
        share_code = os.getenv(f"SHARED_AI_CODE_{n}")
        if not share_code:
            log.warn(f"SHARED_AI_CODE_{n} not set, skipping bot {n}")
        else:
            bots.append(BotConfig(
                id=os.getenv(f"BOT_ID_{n}", f"bot{n}"),
                token=os.getenv(f"BOT_TOKEN_{n}"),
                share_code=share_code,
                enable_filter=_parse_bool(os.getenv(f"ENABLE_FILTER_{n}"))
            ))
        n += 1
    return bots


def load_bot_configs(path: str = BOTS_FILE) -> List[BotConfig]:
    """Load bot configurations from bots.json or fall back to numbered env vars."""
    if os.path.exists(path):
        bots = _load_from_file(path)
        if bots:
            return bots
        log.warn("No valid bots in bots.json, falling back to environment variables")

    return _load_from_env()
