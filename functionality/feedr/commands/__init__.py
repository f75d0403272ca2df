from __future__ import annotations

"""Command registration package for Feedr.

Exposes a single `register_commands(client, shared)` that sets up all slash
commands from their separate modules.
"""

from typing import List

import lightbulb

from .common import SharedContext


def register_commands(client: lightbulb.Client, shared: SharedContext) -> List[str]:
    """Register all Feedr commands on a Lightbulb client and return names."""
    from .help import register as reg_help
    from .info import register as reg_info
    from .track import register as reg_track
    from .tracked import register as reg_tracked
    from .untrack import register as reg_untrack

    names: List[str] = []
    names.append(reg_track(client, shared))
    names.append(reg_untrack(client, shared))
    names.append(reg_tracked(client, shared))
    names.append(reg_help(client, shared))
    names.extend(reg_info(client, shared))
    return names


__all__ = ["SharedContext", "register_commands"]
