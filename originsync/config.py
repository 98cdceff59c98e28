import enum
import typing as t

from configomatic import (
    Configuration as BaseConfiguration,
)
from configomatic import (
    LoggingConfiguration,
    Section,
)
from pydantic import (
    AfterValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    conint,
    constr,
    field_validator,
)
from pydantic import (
    AnyHttpUrl as PyAnyHttpUrl,
)

#: Type for a string that validates as a URL
AnyHttpUrl = t.Annotated[
    str, AfterValidator(lambda v: str(TypeAdapter(PyAnyHttpUrl).validate_python(v)))
]


class SiteNetwork(str, enum.Enum):
    """
    The side of the site that origin servers are reached on.
    """

    INSIDE = "inside"
    OUTSIDE = "outside"


class XCConfiguration(Section):
    """
    Configuration for the F5 Distributed Cloud API and the site that hosts the cluster.
    """

    model_config = ConfigDict(frozen=True)

    #: The API domain for the tenant, e.g. https://tenant.console.ves.volterra.io
    api_domain: AnyHttpUrl
    #: The XC namespace that origin pools are created in
    namespace: constr(min_length=1)
    #: The API token used to authenticate with XC
    token: constr(min_length=1)
    #: The name of the site that origin servers are located in
    site_name: constr(min_length=1)
    #: The network on the site that origin servers are reached on
    site_network: SiteNetwork
    #: The tenant that owns the site
    #: If not given, the tenant is omitted from site references
    site_tenant: constr(min_length=1) | None = None
    #: The XC namespace that the site lives in
    site_namespace: constr(min_length=1) = "system"
    #: The timeout in seconds for each request to the XC API
    request_timeout: conint(gt=0) = 10
    #: The description to attach to managed origin pools
    description: str = "Created by OriginSync"

    @field_validator("site_network", mode="before")
    @classmethod
    def normalise_site_network(cls, v):
        """
        Allows the site network to be given in any case, e.g. Inside or OUTSIDE.
        """
        return v.lower() if isinstance(v, str) else v


class MetricsConfiguration(Section):
    """
    Configuration for the metrics endpoint.
    """

    #: Indicates whether the metrics server should be started
    enabled: bool = True
    #: The port to serve metrics on
    port: conint(gt=0) = 8080


class Configuration(
    BaseConfiguration,
    default_path="/etc/originsync/config.yaml",
    path_env_var="ORIGINSYNC_CONFIG",
    env_prefix="ORIGINSYNC",
):
    """
    Top-level configuration model.
    """

    #: The logging configuration
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)

    #: The namespace to watch services in
    #: If not given, services in all namespaces are watched
    watch_namespace: constr(min_length=1) | None = None

    #: The amount of time (seconds) before a watch is forcefully restarted
    watch_timeout: conint(gt=0) = 600

    #: The XC configuration
    xc: XCConfiguration

    #: The metrics configuration
    metrics: MetricsConfiguration = Field(default_factory=MetricsConfiguration)
