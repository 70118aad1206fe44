"""
Per-invocation state handed from the ``deplock`` group to its commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from deplock.config import DepLockConfig


class DepLockContext:
    """Settings resolved once by the group callback.

    Attributes:
        config: Loaded configuration (defaults when no file was found).
        config_path: File the configuration came from, if any.
        verbose: ``-v`` count.
        color: Whether colored output is enabled.
    """

    __slots__ = ("config", "config_path", "verbose", "color")

    def __init__(
        self,
        config: Optional[DepLockConfig] = None,
        *,
        config_path: Optional[Path] = None,
        verbose: int = 0,
        color: bool = True,
    ) -> None:
        self.config = config if config is not None else DepLockConfig()
        self.config_path = config_path
        self.verbose = verbose
        self.color = color


#: Injects the group's :class:`DepLockContext`, creating a default one for
#: commands invoked on their own (as in tests).
pass_context = click.make_pass_decorator(DepLockContext, ensure=True)
