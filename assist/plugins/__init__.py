"""
Capability plugins and their construction from configuration.
"""
from typing import Any, Dict, List

from ..clients import ArrClient
from ..config import service_credentials
from ..selection_cache import SelectionCache
from ..utils.logging import get_logger
from .base import Plugin
from .health import HealthPlugin, ServiceTarget
from .request import RequestPlugin

logger = get_logger(__name__)

# service -> (display name, api version, health path)
HEALTH_ENDPOINTS = {
    "sonarr": ("Sonarr", "v3", "/api/v3/health"),
    "radarr": ("Radarr", "v3", "/api/v3/health"),
    "prowlarr": ("Prowlarr", "v1", "/api/v1/health"),
}


def build_plugins(config: Dict[str, Any]) -> List[Plugin]:
    """Instantiate plugins for the configured services, in routing order."""
    plugins: List[Plugin] = []
    timeout = config.get("HTTP_TIMEOUT_S", 10.0)

    if service_credentials(config, "prowlarr") is not None:
        clients = {}
        for service, (_, version, _) in HEALTH_ENDPOINTS.items():
            creds = service_credentials(config, service)
            if creds is not None:
                clients[service] = ArrClient(creds[0], creds[1], api_version=version, timeout=timeout)
        plugins.append(
            RequestPlugin(
                clients["prowlarr"],
                sonarr=clients.get("sonarr"),
                radarr=clients.get("radarr"),
                cache=SelectionCache(ttl_seconds=config.get("SELECTION_TTL_S", 900)),
            )
        )
        logger.info("Loaded request plugin", extra={"subsys": "plugins"})
    else:
        logger.info("Prowlarr not configured; request plugin disabled", extra={"subsys": "plugins"})

    services = []
    for service, (display_name, _, path) in HEALTH_ENDPOINTS.items():
        creds = service_credentials(config, service)
        if creds is not None:
            url, key = creds
            services.append(ServiceTarget(display_name, url.rstrip("/") + path, key, "X-Api-Key"))
    plugins.append(HealthPlugin(services, timeout=config.get("HEALTH_TIMEOUT_S", 5.0)))
    logger.info(f"Loaded health plugin ({len(services)} services)", extra={"subsys": "plugins"})

    logger.info(f"Loaded {len(plugins)} plugins", extra={"subsys": "plugins"})
    return plugins


__all__ = ["Plugin", "HealthPlugin", "RequestPlugin", "ServiceTarget", "build_plugins"]
