"""Plugin manager that selects the platform adapter for a cluster."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pluggy

from hcp_platform.hooks import PROJECT_NAME, HCPPlatformHookSpec
from hcp_platform.platforms.base import PlatformType
from hcp_platform.utils.errors import MisconfiguredPlatformError, PlatformAdapterError

if TYPE_CHECKING:
    from hcp_platform.clients.base import K8sClient
    from hcp_platform.config import HCPPlatformConfig
    from hcp_platform.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)

# Setuptools entry point group for external platform plugins
ENTRYPOINT_GROUP = "hcp_platform"


class PluginManager:
    """Collects platform adapters from plugins and hands out one per type.

    Selection happens once per cluster, from the platform type tag, before
    any adapter method is called.
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(HCPPlatformHookSpec)

    @property
    def hook(self) -> Any:
        """The pluggy hook relay."""
        return self._pm.hook

    @property
    def registered_plugins(self) -> list[str]:
        """Names of all registered plugins."""
        return [
            name
            for name, plugin in self._pm.list_name_plugin()
            if plugin is not None
        ]

    def register_plugin(self, plugin: Any, name: str | None = None) -> str:
        """Register a plugin.

        The name defaults to the plugin's `name` attribute, then to pluggy's
        canonical name for the object.
        """
        plugin_name = self._pm.register(plugin, name=name or getattr(plugin, "name", None))
        if plugin_name is None:
            raise PlatformAdapterError(f"Plugin {plugin!r} is blocked and was not registered")
        logger.debug(f"Registered platform plugin {plugin_name}")
        return plugin_name

    def unregister_plugin(self, name: str) -> None:
        """Unregister a plugin by name."""
        self._pm.unregister(name=name)

    def load_builtin_plugins(self) -> int:
        """Register the MAAS and None plugins. Returns the number registered."""
        from hcp_platform.platforms.registry import get_builtin_plugins

        plugins = get_builtin_plugins()
        for plugin in plugins:
            self.register_plugin(plugin)
        return len(plugins)

    def load_entrypoint_plugins(self) -> int:
        """Discover plugins from installed packages. Returns the number loaded."""
        count: int = self._pm.load_setuptools_entrypoints(ENTRYPOINT_GROUP)
        if count:
            logger.info(f"Loaded {count} platform plugins from entry points")
        return count

    def adapter_classes(self) -> dict[PlatformType, type[PlatformAdapter]]:
        """Adapter classes by platform type.

        Raises:
            MisconfiguredPlatformError: If two plugins provide the same type.
        """
        classes: dict[PlatformType, type[PlatformAdapter]] = {}
        for provided in self._pm.hook.hcp_get_platform_adapters():
            for adapter_cls in provided:
                platform_type = adapter_cls.platform_type
                existing = classes.get(platform_type)
                if existing is not None and existing is not adapter_cls:
                    raise MisconfiguredPlatformError(
                        f"platform type '{platform_type.value}' is provided by both "
                        f"{existing.__name__} and {adapter_cls.__name__}"
                    )
                classes[platform_type] = adapter_cls
        return classes

    def get_adapter(
        self,
        platform_type: PlatformType | str | None,
        k8s: K8sClient,
        config: HCPPlatformConfig,
    ) -> PlatformAdapter:
        """Instantiate the adapter for a platform type.

        Raises:
            MisconfiguredPlatformError: If no plugin provides the type.
        """
        classes = self.adapter_classes()
        try:
            key = PlatformType(platform_type)
        except ValueError:
            key = None
        if key is None or key not in classes:
            raise MisconfiguredPlatformError(f"unsupported platform type '{platform_type}'")
        return classes[key](k8s, config)
