"""Command line interface (`python -m dqrepair.cli`)."""

from .__main__ import main

__all__ = [
    "main",
]
