import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _flag(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Config:
    """
    Settings read from the environment once at start-up.

    - GEMINI_API_KEY (or API_KEY): key for the AI assistant; unset disables it
    - PORTAL_AI_MODEL / PORTAL_AI_IMAGE_MODEL: model names for text and images
    - PORTAL_AI_TIMEOUT: seconds to wait for one AI answer
    - PORTAL_NEW_LAUNCH_DAYS: how long a product counts as a new launch
    - PORTAL_COMPARE_LIMIT: products allowed in the comparison table
    - PORTAL_NOTIFY: open messaging links on order changes (default on)
    - DEBUG: verbose logging
    """

    ai_api_key: str = ""
    ai_model: str = "gemini-2.5-flash"
    ai_image_model: str = "gemini-2.5-flash-image"
    ai_timeout: float = 15.0
    new_launch_days: int = 60
    compare_limit: int = 4
    notify: bool = True
    debug: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            ai_api_key=env.get("GEMINI_API_KEY") or env.get("API_KEY") or "",
            ai_model=env.get("PORTAL_AI_MODEL") or defaults.ai_model,
            ai_image_model=env.get("PORTAL_AI_IMAGE_MODEL") or defaults.ai_image_model,
            ai_timeout=float(env.get("PORTAL_AI_TIMEOUT") or defaults.ai_timeout),
            new_launch_days=int(
                env.get("PORTAL_NEW_LAUNCH_DAYS") or defaults.new_launch_days
            ),
            compare_limit=int(env.get("PORTAL_COMPARE_LIMIT") or defaults.compare_limit),
            notify=_flag(env.get("PORTAL_NOTIFY", "1")),
            debug=_flag(env.get("DEBUG")),
        )
