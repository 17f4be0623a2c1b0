import math
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DOCS_DIR = ROOT / "docs"
DEFAULT_CSS_NAME = Path("styles") / "diagrams.css"


def _parse_segments(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(p.strip() for p in raw.replace("\\", "/").split("/") if p.strip())


def _env_number(name: str, default: str) -> float:
    raw = (os.getenv(name, default) or default).strip()
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    docs_dir: Path
    output_segments: tuple[str, ...] = ()
    css_file: Path
    debug: bool = False
    # Logging
    log_file: Path | None = None
    log_level: str = "INFO"
    log_max_bytes: int = 5 * 1024 * 1024
    log_backups: int = 5
    # Renderers
    render_timeout_sec: float | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return (v or "INFO").upper()

    @field_validator("docs_dir", "css_file", mode="before")
    @classmethod
    def _ensure_path(cls, v: Path | str) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("log_file", mode="before")
    @classmethod
    def _ensure_log_path(cls, v: str | Path | None) -> Path | None:
        if not v:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("output_segments", mode="before")
    @classmethod
    def _normalize_segments(cls, v: object) -> tuple[str, ...]:
        if v in (None, "", (), []):
            return ()
        if isinstance(v, (list, tuple)):
            return tuple(str(s).strip() for s in v if str(s).strip())
        return _parse_segments(str(v))


def load_settings(debug: bool = False) -> Settings:
    docs_dir_raw = os.getenv("DOCS_DIR", "").strip()
    docs_dir = Path(docs_dir_raw).expanduser().resolve() if docs_dir_raw else DEFAULT_DOCS_DIR

    css_raw = os.getenv("CSS_FILE", "").strip()
    css_file = Path(css_raw).expanduser().resolve() if css_raw else docs_dir / DEFAULT_CSS_NAME

    output_segments = _parse_segments(os.getenv("OUTPUT_DIR"))

    # Logging; --debug wins over LOG_LEVEL
    log_file_raw = os.getenv("LOG_FILE", "").strip()
    log_file = Path(log_file_raw).expanduser().resolve() if log_file_raw else None
    log_level = "DEBUG" if debug else (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
    log_max_bytes = int(_env_number("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
    log_backups = int(_env_number("LOG_BACKUPS", "5"))

    timeout_raw = os.getenv("RENDER_TIMEOUT_SEC", "").strip()
    timeout = _env_number("RENDER_TIMEOUT_SEC", timeout_raw) if timeout_raw else None
    if timeout is not None and (not math.isfinite(timeout) or timeout <= 0):
        raise RuntimeError(f"RENDER_TIMEOUT_SEC must be a positive number, got {timeout_raw!r}")

    return Settings(
        docs_dir=docs_dir,
        output_segments=output_segments,
        css_file=css_file,
        debug=debug,
        log_file=log_file,
        log_level=log_level,
        log_max_bytes=log_max_bytes,
        log_backups=log_backups,
        render_timeout_sec=timeout,
    )
