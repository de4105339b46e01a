from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LiveEditConfig:
    project_root: str = "."
    host: str = "127.0.0.1"
    port: int = 5100
    message_prefix: str = "liveedit_design_mode"
    line_lookback_chars: int = 1000
    text_snippet_max: int = 50
    text_snippet_min: int = 3
    upload_dir: str = "public/images"
    max_upload_bytes: int = 10 * 1024 * 1024
    max_upload_chunks: int = 4096
    upload_ttl_seconds: float = 600.0
    allowed_upload_types: tuple[str, ...] = (
        "image/png",
        "image/jpeg",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "image/avif",
    )
    source_extensions: tuple[str, ...] = (
        ".tsx",
        ".jsx",
        ".ts",
        ".js",
        ".html",
        ".vue",
        ".svelte",
    )
    log_level: str = "INFO"
