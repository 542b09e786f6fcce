"""Application settings from environment."""
import os
from functools import lru_cache


@lru_cache
def get_settings() -> "Settings":
    return Settings()


class Settings:
    """Central config. Load .env in the entry points before using. Values are @property so they read env at access time."""

    # NVIDIA LLM
    @property
    def nvidia_api_key(self) -> str:
        return os.getenv("NVIDIA_API_KEY", "").strip()

    @property
    def nvidia_model(self) -> str:
        return (os.getenv("NVIDIA_MODEL", "") or "").strip() or "meta/llama-3.1-70b-instruct"

    @property
    def agent_temperature(self) -> float:
        raw = os.getenv("AGENT_TEMPERATURE", "0.2").strip()
        try:
            return max(0.0, min(1.0, float(raw)))
        except ValueError:
            return 0.2

    # API
    @property
    def api_title(self) -> str:
        return os.getenv("API_TITLE", "Orbit Agent API").strip()

    @property
    def api_version(self) -> str:
        return os.getenv("API_VERSION", "0.1.0").strip()

    # CORS: comma-separated origins (e.g. http://localhost:3000) or * for all
    @property
    def cors_origins(self) -> list[str]:
        raw = os.getenv("CORS_ORIGINS", "*").strip()
        if not raw or raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

    # Chat client (terminal UI)
    @property
    def orbit_api_url(self) -> str:
        return os.getenv("ORBIT_API_URL", "http://127.0.0.1:8000").strip().rstrip("/")

    @property
    def client_timeout_seconds(self) -> float | None:
        """None means the client waits for the agent indefinitely."""
        raw = os.getenv("ORBIT_CLIENT_TIMEOUT", "").strip()
        if not raw:
            return None
        try:
            return max(1.0, float(raw))
        except ValueError:
            return None

    # Server (run_api.py); HOST=0.0.0.0 exposes the API beyond localhost
    @property
    def host(self) -> str:
        return os.getenv("HOST", "127.0.0.1").strip()

    @property
    def port(self) -> int:
        return int(os.getenv("PORT", "8000"))

    @property
    def reload(self) -> bool:
        return os.getenv("RELOAD", "1").strip().lower() not in ("0", "false", "no")
