import dataclasses

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


#: The service type whose ports are published on every node
NODE_PORT = "NodePort"


class KubeModel(BaseModel):
    """
    Base model for snapshots of Kubernetes objects.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class ObjectMeta(KubeModel):
    """
    The subset of object metadata that is used to identify a service.
    """

    name: str = Field(..., description="The name of the object.")
    namespace: str = Field("default", description="The namespace of the object.")
    uid: str | None = Field(None, description="The UID of the object.")
    resource_version: str | None = Field(
        None, description="The resource version of the object."
    )


class ServicePort(KubeModel):
    """
    A port declared by a service.
    """

    name: str | None = Field(None, description="The name of the port.")
    protocol: str = Field("TCP", description="The protocol for the port.")
    port: int = Field(..., description="The port exposed inside the cluster.")
    target_port: int | str | None = Field(
        None, description="The port on the pods that traffic is sent to."
    )
    node_port: int | None = Field(
        None, description="The port opened on every node, if assigned."
    )


class ServiceSpec(KubeModel):
    """
    The spec of a service.
    """

    type: str = Field("ClusterIP", description="The exposure type of the service.")
    selector: dict[str, str] = Field(
        default_factory=dict, description="The labels used to select backing pods."
    )
    ports: list[ServicePort] = Field(
        default_factory=list, description="The ports declared by the service."
    )


class Service(KubeModel):
    """
    A snapshot of a Kubernetes service.
    """

    metadata: ObjectMeta
    spec: ServiceSpec = Field(default_factory=ServiceSpec)

    @property
    def key(self):
        """
        The namespaced identifier for the service.
        """
        return f"{self.metadata.namespace}/{self.metadata.name}"

    @property
    def is_node_reachable(self):
        """
        Indicates if the service publishes its ports on every node.
        """
        return self.spec.type == NODE_PORT

    @property
    def node_port(self):
        """
        The node port of the first declared port that has one, or None.
        """
        return next(
            (port.node_port for port in self.spec.ports if port.node_port),
            None
        )


@dataclasses.dataclass(frozen=True)
class ServiceAdded:
    service: Service


@dataclasses.dataclass(frozen=True)
class ServiceUpdated:
    service: Service


@dataclasses.dataclass(frozen=True)
class ServiceRemoved:
    service: Service


ServiceEvent = ServiceAdded | ServiceUpdated | ServiceRemoved


# The initial listing of a watch is delivered with no event type
EVENT_TYPES = {
    None: ServiceAdded,
    "ADDED": ServiceAdded,
    "MODIFIED": ServiceUpdated,
    "DELETED": ServiceRemoved,
}


def event_for(event_type, body) -> ServiceEvent | None:
    """
    Returns the service event for a watch event type and object body, or None
    if the event type is not recognised.
    """
    event_class = EVENT_TYPES.get(event_type)
    if event_class is None:
        return None
    return event_class(Service.model_validate(body))
