"""Tests for the exposition WSGI application and registry assembly."""

from wsgiref.util import setup_testing_defaults

import pytest
from prometheus_client import CollectorRegistry, Gauge

from nifcloud_nas_exporter.collectors.nas_collector import NASCollector
from nifcloud_nas_exporter.config.models import ExporterConfig
from nifcloud_nas_exporter.main import ExporterApp, build_parser, build_registry, overrides_from_args
from nifcloud_nas_exporter.server import ExporterApplication

# Fixtures imported from conftest.py: target, logger, stub_fetcher_factory


def call(app, path):
    """Invoke a WSGI app and return (status, headers, body)."""
    environ = {"PATH_INFO": path}
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body.decode("utf-8")


@pytest.fixture
def registry():
    registry = CollectorRegistry()
    gauge = Gauge("test_gauge", "A test gauge.", registry=registry)
    gauge.set(3)
    return registry


def make_config(**web):
    return ExporterConfig(
        target={"nas_instance_id": "nas001"},
        credentials={"access_key_id": "AKID", "secret_access_key": "SECRET"},
        web=web,
    )


class TestExporterApplication:
    """Test suite for ExporterApplication."""

    def test_serves_metrics(self, registry):
        app = ExporterApplication(registry, telemetry_path="/metrics")

        status, headers, body = call(app, "/metrics")

        assert status.startswith("200")
        assert headers["Content-Type"].startswith("text/plain")
        assert "test_gauge 3.0" in body

    @pytest.mark.parametrize("path", ["/", "/anything"])
    def test_landing_page(self, registry, path):
        app = ExporterApplication(registry, telemetry_path="/probe")

        status, headers, body = call(app, path)

        assert status.startswith("200")
        assert headers["Content-Type"].startswith("text/html")
        assert "<h1>NIFCLOUD NAS Exporter</h1>" in body
        assert '<a href="/probe">Metrics</a>' in body

    def test_rejects_beyond_max_requests(self, registry):
        app = ExporterApplication(registry, max_requests=2, instrumentation_registry=registry)
        # Occupy every slot as if two scrapes were in flight
        app._slots.acquire()
        app._slots.acquire()

        status, _, body = call(app, "/metrics")

        assert status.startswith("503")
        assert body == "Limit of concurrent requests reached (2), try again later.\n"
        assert registry.get_sample_value("promhttp_metric_handler_requests_total", {"code": "503"}) == 1.0

    def test_slot_released_after_scrape(self, registry):
        app = ExporterApplication(registry, max_requests=1)

        for _ in range(3):
            status, _, _ = call(app, "/metrics")
            assert status.startswith("200")

    def test_unlimited_when_zero(self, registry):
        app = ExporterApplication(registry, max_requests=0)

        assert app._slots is None
        assert call(app, "/metrics")[0].startswith("200")

    def test_handler_metrics(self, registry):
        app = ExporterApplication(registry, instrumentation_registry=registry)

        call(app, "/metrics")
        _, _, body = call(app, "/metrics")

        assert registry.get_sample_value("promhttp_metric_handler_requests_total", {"code": "200"}) == 2.0
        # The second scrape sees itself in flight
        assert "promhttp_metric_handler_requests_in_flight 1.0" in body
        assert registry.get_sample_value("promhttp_metric_handler_requests_in_flight") == 0.0


class TestRegistry:
    """Test suite for registry assembly."""

    def test_exporter_metrics_enabled(self, target, logger, stub_fetcher_factory):
        collector = NASCollector(target, stub_fetcher_factory(), logger)
        registry = build_registry(make_config(), collector)

        names = {family.name for family in registry.collect()}

        assert "nifcloud_nas_exporter_build" in names
        assert "python_gc_objects_collected" in names
        assert "nifcloud_nas_scrape_collector_success" in names

    def test_exporter_metrics_disabled(self, target, logger, stub_fetcher_factory):
        collector = NASCollector(target, stub_fetcher_factory(), logger)
        registry = build_registry(make_config(disable_exporter_metrics=True), collector)

        names = {family.name for family in registry.collect()}

        assert not any(name.startswith(("process_", "python_")) for name in names)
        assert "nifcloud_nas_exporter_build" in names

    def test_app_wires_collector(self, logger, stub_fetcher_factory):
        exporter = ExporterApp(make_config(), logger)
        exporter.collector.fetcher = stub_fetcher_factory({"FreeStorageSpace": (0, 5.0)})
        try:
            status, _, body = call(exporter.app, "/metrics")
        finally:
            exporter.client.close()

        assert status.startswith("200")
        assert 'nifcloud_nas_free_storage_space{instance="nas001",region="jp-east-1"} 5.0' in body
        assert 'promhttp_metric_handler_requests_in_flight 1.0' in body


class TestCommandLine:
    """Test suite for flag parsing."""

    def test_flags_map_to_config_tree(self):
        args = build_parser().parse_args([
            "--nifcloud.nas-instance-id", "nas001",
            "--nifcloud.region", "jp-west-1",
            "--web.listen-address", ":9999",
            "--web.max-requests", "5",
            "--web.disable-exporter-metrics",
        ])

        overrides = overrides_from_args(args)

        assert overrides["target"] == {"nas_instance_id": "nas001", "region": "jp-west-1"}
        assert overrides["web"]["listen_address"] == ":9999"
        assert overrides["web"]["max_requests"] == 5
        assert overrides["web"]["disable_exporter_metrics"] is True
        assert overrides["web"]["telemetry_path"] is None
        assert overrides["credentials"] == {"access_key_id": None, "secret_access_key": None}

    def test_unset_flags_are_none(self):
        args = build_parser().parse_args([])

        assert args.disable_exporter_metrics is None
        assert args.config is None
