"""Передача готового файла системному обработчику («поделиться»)."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class ShareGateway:
    """Открывает файл приложением, назначенным в ОС для его типа."""

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform or sys.platform

    def _command(self) -> str | None:
        if self._platform.startswith("darwin"):
            return "open"
        return "xdg-open"

    def is_available(self) -> bool:
        if self._platform.startswith("win"):
            return hasattr(os, "startfile")
        command = self._command()
        return command is not None and shutil.which(command) is not None

    def share(self, path: str | os.PathLike[str]) -> None:
        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(str(target))
        if self._platform.startswith("win"):
            os.startfile(target)  # type: ignore[attr-defined]
        else:
            subprocess.Popen([self._command(), str(target)])
        logger.info("📤 Файл передан системе: %s", target)


__all__ = ["ShareGateway"]
