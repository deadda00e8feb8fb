"""Pluggy hook specifications for platform adapter plugins.

A plugin contributes one or more PlatformAdapter classes. The built-in
MAAS and None adapters are registered the same way as external ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from hcp_platform.platforms.base import PlatformAdapter

# Project name used for pluggy hook registration
PROJECT_NAME = "hcp_platform"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Exported for plugins to use
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class HCPPlatformHookSpec:
    """Hook specifications for platform adapter plugins."""

    @hookspec
    def hcp_get_platform_adapters(self) -> list[type[PlatformAdapter]]:
        """Return the adapter classes this plugin provides.

        Each class must set `platform_type`. A platform type may be provided
        by only one registered plugin.

        Returns:
            List of PlatformAdapter subclasses.
        """
        raise NotImplementedError
