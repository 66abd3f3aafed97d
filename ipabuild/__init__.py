"""Build iOS apps with xcodebuild and package them into .ipa archives."""
from __future__ import annotations

from .cli import main

__all__ = ["main"]
