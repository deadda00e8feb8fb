"""Built-in platform adapter plugins."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hcp_platform.hooks import hookimpl

if TYPE_CHECKING:
    from hcp_platform.platforms.base import PlatformAdapter


class MAASPlugin:
    """Plugin for MAAS bare metal clusters."""

    name = "maas"

    @hookimpl
    def hcp_get_platform_adapters(self) -> list[type[PlatformAdapter]]:
        from hcp_platform.platforms.maas.adapter import MAASPlatform

        return [MAASPlatform]


class NonePlugin:
    """Plugin for clusters with user-provisioned nodes."""

    name = "none"

    @hookimpl
    def hcp_get_platform_adapters(self) -> list[type[PlatformAdapter]]:
        from hcp_platform.platforms.none import NonePlatform

        return [NonePlatform]


def get_builtin_plugins() -> list[MAASPlugin | NonePlugin]:
    """Return all built-in platform plugin instances."""
    return [MAASPlugin(), NonePlugin()]
