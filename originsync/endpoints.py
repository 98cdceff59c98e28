import logging

import httpx

from easykube import ApiError

from .errors import ResolutionError


logger = logging.getLogger(__name__)


#: The node address type that origin servers are taken from
INTERNAL_IP = "InternalIP"


def internal_address(node):
    """
    Returns the first internal address of the given node, or None if it has none.
    """
    return next(
        (
            address["address"]
            for address in node.get("status", {}).get("addresses", [])
            if address.get("type") == INTERNAL_IP
        ),
        None
    )


class EndpointResolver:
    """
    Resolves a service to the internal addresses of the nodes running its pods.
    """
    def __init__(self, ekclient):
        self._ekclient = ekclient

    async def resolve(self, service):
        """
        Returns the set of node addresses that back the given service.

        Only a failure to list the pods for the service is raised. Nodes that cannot
        be fetched, or that have no internal address, are logged and left out.
        """
        if not service.spec.selector:
            logger.info("service %s has no selector - no endpoints", service.key)
            return set()
        ekcore = self._ekclient.api("v1")
        try:
            ekpods = await ekcore.resource("pods")
            eknodes = await ekcore.resource("nodes")
            pods = [
                pod
                async for pod in ekpods.list(
                    labels = service.spec.selector,
                    namespace = service.metadata.namespace
                )
            ]
        except (ApiError, httpx.HTTPError) as exc:
            raise ResolutionError(
                f"error fetching pods for service {service.key}: {exc}"
            ) from exc
        # Each node contributes at most one address, however many pods it runs
        addresses = {}
        seen_nodes = set()
        for pod in pods:
            node_name = pod.get("spec", {}).get("nodeName")
            # Pods that are not scheduled yet have no node
            if not node_name or node_name in seen_nodes:
                continue
            seen_nodes.add(node_name)
            try:
                node = await eknodes.fetch(node_name)
            except (ApiError, httpx.HTTPError) as exc:
                logger.warning(
                    "error fetching node %s for pod %s: %s",
                    node_name,
                    pod["metadata"]["name"],
                    exc
                )
                continue
            address = internal_address(node)
            if address:
                addresses[node_name] = address
            else:
                logger.warning("node %s has no internal address", node_name)
        return set(addresses.values())
