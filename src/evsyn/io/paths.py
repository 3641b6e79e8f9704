"""Output directory and file path management."""

from pathlib import Path
from datetime import datetime
from typing import Optional

from ..config.settings import settings


def create_output_dir(phase: str = "analysis", timestamp: Optional[datetime] = None, root: Optional[Path] = None) -> Path:
    if timestamp is None:
        timestamp = datetime.now()
    dirname = f"{phase}_{timestamp.strftime('%Y%m%d_%H%M%S')}"
    dirpath = (root or settings.output_dir) / dirname
    dirpath.mkdir(parents=True, exist_ok=True)
    return dirpath
