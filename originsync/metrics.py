import asyncio
import collections
import functools

from aiohttp import web


class ReconcileStats:
    """
    Records the outcome of reconciliation attempts for reporting as metrics.
    """
    def __init__(self):
        self.attempts = collections.Counter()
        self.pool_servers = {}

    def record(self, action, outcome):
        self.attempts[(action, outcome)] += 1

    def pool_applied(self, name, server_count):
        self.pool_servers[name] = server_count

    def pool_removed(self, name):
        self.pool_servers.pop(name, None)


class Metric:
    # The prefix for the metric
    prefix = "originsync"
    # The suffix for the metric
    suffix = None
    # The type of the metric - counter or gauge
    type = "gauge"
    # The description of the metric
    description = None

    def __init__(self, stats):
        self._stats = stats

    @property
    def name(self):
        return f"{self.prefix}_{self.suffix}"

    @property
    def sample_name(self):
        """The name used for samples, which for counters has a _total suffix."""
        return f"{self.name}_total" if self.type == "counter" else self.name

    def records(self):
        """Returns the records for the metric, i.e. a list of (labels, value) tuples."""
        raise NotImplementedError


class Reconciliations(Metric):
    suffix = "reconciliations"
    type = "counter"
    description = "Reconciliation attempts by action and outcome"

    def records(self):
        for (action, outcome), count in sorted(self._stats.attempts.items()):
            yield {"action": action, "outcome": outcome}, count


class OriginPoolServers(Metric):
    suffix = "origin_pool_servers"
    description = "Origin servers in the last applied state of each origin pool"

    def records(self):
        for name, count in sorted(self._stats.pool_servers.items()):
            yield {"origin_pool": name}, count


def escape(content):
    """Escape the given content for use in metric output."""
    return content.replace("\\", r"\\").replace("\n", r"\n").replace('"', r"\"")


def render_openmetrics(*metrics):
    """Renders the metrics using OpenMetrics text format."""
    output = []
    for metric in metrics:
        if metric.description:
            output.append(f"# HELP {metric.name} {escape(metric.description)}\n")
        output.append(f"# TYPE {metric.name} {metric.type}\n")

        for labels, value in metric.records():
            if labels:
                labelstr = "{{{0}}}".format(
                    ",".join([f'{k}="{escape(v)}"' for k, v in sorted(labels.items())])
                )
            else:
                labelstr = ""
            output.append(f"{metric.sample_name}{labelstr} {value}\n")
    output.append("# EOF\n")

    return (
        "application/openmetrics-text; version=1.0.0; charset=utf-8",
        "".join(output).encode("utf-8"),
    )


METRICS = [Reconciliations, OriginPoolServers]


async def metrics_handler(stats, request):
    """Produce metrics for the operator."""
    content_type, content = render_openmetrics(*(klass(stats) for klass in METRICS))
    return web.Response(headers={"Content-Type": content_type}, body=content)


async def metrics_server(stats, port):
    """Launch a lightweight HTTP server to serve the metrics endpoint."""
    app = web.Application()
    app.add_routes([web.get("/metrics", functools.partial(metrics_handler, stats))])

    runner = web.AppRunner(app, handle_signals=False)
    await runner.setup()

    site = web.TCPSite(runner, "0.0.0.0", port, shutdown_timeout=1.0)
    await site.start()

    # Sleep until we need to clean up
    try:
        await asyncio.Event().wait()
    finally:
        await asyncio.shield(runner.cleanup())
