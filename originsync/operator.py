import logging

import kopf
import pydantic

import easykube

from .config import Configuration
from .endpoints import EndpointResolver
from .metrics import ReconcileStats
from .models import event_for
from .reconciler import Reconciler
from .xc import OriginPoolClient


logger = logging.getLogger(__name__)


@kopf.on.startup()
async def on_startup(memo, **kwargs):
    """
    Apply kopf settings and build the reconciler.
    """
    # When run using "kopf run", the configuration has not been loaded yet
    if "config" not in memo:
        memo.config = Configuration()
        memo.config.logging.apply()
    config = memo.config
    kopf_settings = kwargs["settings"]
    kopf_settings.watching.client_timeout = config.watch_timeout
    # Outcomes are only reported in the logs, never as events on the service
    kopf_settings.posting.enabled = False
    memo.ekclient = easykube.Configuration.from_environment().async_client()
    memo.xcclient = OriginPoolClient(config.xc)
    memo.reconciler = Reconciler(
        config.xc,
        EndpointResolver(memo.ekclient),
        memo.xcclient,
        memo.get("stats") or ReconcileStats()
    )
    logger.info(
        "syncing NodePort services with origin pools in XC namespace %s",
        config.xc.namespace
    )


@kopf.on.cleanup()
async def on_cleanup(memo, **kwargs):
    """
    Runs on operator shutdown.
    """
    if "xcclient" in memo:
        await memo.xcclient.aclose()
    if "ekclient" in memo:
        await memo.ekclient.aclose()


@kopf.on.event("v1", "services")
async def on_service_event(type, body, name, namespace, memo, **kwargs):
    """
    Reconciles the origin pool for a service when it is added, modified or deleted.
    """
    try:
        event = event_for(type, dict(body))
    except pydantic.ValidationError as exc:
        logger.warning("ignoring invalid service %s/%s: %s", namespace, name, exc)
        return
    if event is None:
        return
    await memo.reconciler.handle(event)
