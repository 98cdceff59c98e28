import unittest

from originsync import metrics


class TestMetrics(unittest.TestCase):
    def test_render(self):
        stats = metrics.ReconcileStats()
        stats.record("create", "success")
        stats.record("create", "success")
        stats.record("delete", "absent")
        stats.pool_applied("web", 3)
        stats.pool_applied("api", 0)

        content_type, content = metrics.render_openmetrics(
            *(klass(stats) for klass in metrics.METRICS)
        )

        self.assertTrue(content_type.startswith("application/openmetrics-text"))
        self.assertEqual(
            content.decode(),
            "# HELP originsync_reconciliations Reconciliation attempts by action and outcome\n"
            "# TYPE originsync_reconciliations counter\n"
            'originsync_reconciliations_total{action="create",outcome="success"} 2\n'
            'originsync_reconciliations_total{action="delete",outcome="absent"} 1\n'
            "# HELP originsync_origin_pool_servers "
            "Origin servers in the last applied state of each origin pool\n"
            "# TYPE originsync_origin_pool_servers gauge\n"
            'originsync_origin_pool_servers{origin_pool="api"} 0\n'
            'originsync_origin_pool_servers{origin_pool="web"} 3\n'
            "# EOF\n"
        )

    def test_removed_pool_is_not_reported(self):
        stats = metrics.ReconcileStats()
        stats.pool_applied("web", 3)
        stats.pool_removed("web")
        stats.pool_removed("missing")

        self.assertEqual(list(metrics.OriginPoolServers(stats).records()), [])

    def test_escape(self):
        self.assertEqual(metrics.escape('a"b\\c\nd'), 'a\\"b\\\\c\\nd')
