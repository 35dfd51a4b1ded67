import os
from typing import Optional

API_BASE_URL = os.environ.get("ITHAKA_API_BASE_URL", "https://be.ithaka.world/api").rstrip("/")

MODEL_NAME = os.environ.get("CHAT_MODEL", "google_genai:gemini-2.5-flash")
MODEL_API_KEY_VARS = ("GOOGLE_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY")

MAX_MODEL_CALLS = int(os.environ.get("MAX_MODEL_CALLS", "10"))  # model steps per chat turn, tool rounds included
LISTINGS_PAGE_SIZE = int(os.environ.get("LISTINGS_PAGE_SIZE", "10"))

# 0-100 rapidfuzz score; lower values accept looser phrasings of a sort order.
SORT_MATCH_THRESHOLD = float(os.environ.get("SORT_MATCH_THRESHOLD", "70"))
# A match must beat the best match for any other sort key by at least this much.
SORT_AMBIGUITY_MARGIN = float(os.environ.get("SORT_AMBIGUITY_MARGIN", "5"))

HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "15"))
USER_AGENT = "IthakaAssistant/1.0"


def get_model_api_key() -> Optional[str]:
    """Return the model provider credential, read at call time."""
    for name in MODEL_API_KEY_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None
