import importlib
import os
from pathlib import Path

_ENV_LOADED = False


def _load_env() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    try:
        dotenv = importlib.import_module("dotenv")
    except Exception as exc:  # pragma: no cover
        raise SystemExit(
            "python-dotenv is required (pip install -e .)"
        ) from exc
    env_path = Path(__file__).resolve().parents[1] / ".env"
    dotenv.load_dotenv(dotenv_path=env_path)
    _ENV_LOADED = True


def get_env(
    name: str, default: str | None = None, required: bool = False
) -> str | None:
    _load_env()
    value = os.environ.get(name, default)
    if required and (value is None or value == ""):
        raise SystemExit(f"{name} env var is required")
    return value


def get_int_env(name: str, default: int) -> int:
    raw = get_env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise SystemExit(f"{name} must be an integer, got {raw!r}") from exc


def get_rpc_urls() -> list[str]:
    """RPC_URL may hold several comma-separated fallback endpoints."""
    raw = get_env("RPC_URL", required=True) or ""
    return [url.strip() for url in raw.split(",") if url.strip()]


TRANSACTION_DEFAULTS = {
    "slippage_bps": get_int_env("SLIPPAGE_BPS", 100),
    "deadline_minutes": get_int_env("DEADLINE_MINUTES", 20),
    "gas_priority": get_env("GAS_PRIORITY", "medium") or "medium",
}
