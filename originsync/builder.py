from pydantic import BaseModel, ConfigDict, Field, model_serializer

from .config import SiteNetwork, XCConfiguration
from .errors import PreconditionError
from .naming import canonicalize


#: The load balancing algorithm for managed origin pools
LOADBALANCER_ALGORITHM = "LB_OVERRIDE"
#: The endpoint selection policy for managed origin pools
ENDPOINT_SELECTION = "LOCAL_PREFERRED"


class SiteReference(BaseModel):
    """
    Reference to the site that origin servers are located in.
    """

    model_config = ConfigDict(frozen=True)

    tenant: str | None = Field(None, description="The tenant that owns the site.")
    namespace: str = Field("system", description="The namespace of the site.")
    name: str = Field(..., description="The name of the site.")
    kind: str = Field("site", description="The kind of the referenced object.")

    @classmethod
    def from_config(cls, config: XCConfiguration):
        return cls(
            tenant=config.site_tenant,
            namespace=config.site_namespace,
            name=config.site_name,
        )

    @model_serializer
    def to_api(self):
        data = {}
        if self.tenant:
            data["tenant"] = self.tenant
        data.update(namespace=self.namespace, name=self.name, kind=self.kind)
        return data


class OriginServer(BaseModel):
    """
    An origin server reached by its private IP on a site.
    """

    model_config = ConfigDict(frozen=True)

    ip: str = Field(..., description="The private IP of the origin server.")
    site: SiteReference = Field(..., description="The site the server is on.")
    network: SiteNetwork = Field(
        ..., description="The network on the site that the server is reached on."
    )

    @model_serializer
    def to_api(self):
        return {
            "private_ip": {
                "ip": self.ip,
                "site_locator": {"site": self.site.model_dump()},
                f"{self.network.value}_network": {},
            },
        }


class OriginPool(BaseModel):
    """
    The desired state of an origin pool.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="The name of the origin pool.")
    namespace: str = Field(..., description="The XC namespace of the origin pool.")
    description: str = Field("", description="Human-readable description.")
    disabled: bool = Field(False, description="Indicates if the pool is disabled.")
    origin_servers: list[OriginServer] = Field(
        default_factory=list, description="The origin servers in the pool."
    )
    port: int = Field(..., gt=0, description="The port on the origin servers.")
    #: When false, XC connects to the origin servers without TLS
    use_tls: bool = Field(False, description="Indicates if TLS is used to origins.")
    #: When true, health checks use the same port as the origin servers
    same_as_endpoint_port: bool = Field(
        True, description="Indicates if health checks use the endpoint port."
    )
    loadbalancer_algorithm: str = LOADBALANCER_ALGORITHM
    endpoint_selection: str = ENDPOINT_SELECTION

    @model_serializer
    def to_api(self):
        spec = {
            "origin_servers": [server.model_dump() for server in self.origin_servers],
            "port": self.port,
        }
        spec["use_tls" if self.use_tls else "no_tls"] = {}
        if self.same_as_endpoint_port:
            spec["same_as_endpoint_port"] = {}
        spec.update(
            loadbalancer_algorithm=self.loadbalancer_algorithm,
            endpoint_selection=self.endpoint_selection,
        )
        return {
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "description": self.description,
                "disable": self.disabled,
            },
            "spec": spec,
        }


def build_origin_pool(service, endpoints, site: SiteReference, config: XCConfiguration):
    """
    Returns the desired origin pool for the service and its node addresses.

    Raises PreconditionError if the service has no node port.
    """
    port = service.node_port
    if not port:
        raise PreconditionError(f"service {service.key} has no node port assigned")
    return OriginPool(
        name=canonicalize(service.metadata.name),
        namespace=config.namespace,
        description=config.description,
        origin_servers=[
            OriginServer(ip=address, site=site, network=config.site_network)
            for address in sorted(endpoints)
        ],
        port=port,
    )
