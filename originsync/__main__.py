import asyncio

import kopf

# Importing the operator module registers the kopf handlers
from . import operator  # noqa: F401
from .config import Configuration
from .metrics import ReconcileStats, metrics_server


async def run(config):
    """
    Runs the operator and, if enabled, the metrics server until one of them exits.
    """
    memo = kopf.Memo(config = config, stats = ReconcileStats())
    tasks = [
        asyncio.ensure_future(
            kopf.operator(
                clusterwide = not config.watch_namespace,
                namespaces = [config.watch_namespace] if config.watch_namespace else [],
                memo = memo,
                standalone = True
            )
        ),
    ]
    if config.metrics.enabled:
        tasks.append(
            asyncio.ensure_future(metrics_server(memo.stats, config.metrics.port))
        )
    done, pending = await asyncio.wait(tasks, return_when = asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    for task in done:
        task.result()


def main():
    # Missing or invalid configuration prevents the operator from starting
    config = Configuration()
    config.logging.apply()
    asyncio.run(run(config))


if __name__ == "__main__":
    main()
