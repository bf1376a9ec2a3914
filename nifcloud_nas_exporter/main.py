"""Main application entry point for the NIFCLOUD NAS exporter."""

import argparse
import logging
import platform
import signal
import sys
from typing import Any, Dict, List, Optional

import yaml
from prometheus_client import CollectorRegistry, GCCollector, Info, PlatformCollector, ProcessCollector
from pydantic import ValidationError

from .collectors.definitions import EXPORTER_NAME
from .collectors.fetcher import MetricFetcher
from .collectors.nas_collector import NASCollector
from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .config.settings import Settings
from .server import ExporterApplication, make_exporter_server
from .services.nas_client import NASClient
from .utils.logger import setup_logger


__version__ = "0.1.0"


def build_registry(config: ExporterConfig, collector: NASCollector) -> CollectorRegistry:
    """
    Assemble the registry exposed on the telemetry path.

    Args:
        config: Exporter configuration
        collector: NAS collector to register

    Returns:
        CollectorRegistry: Registry with the collector, build info and,
        unless disabled, process/platform/GC metrics
    """
    registry = CollectorRegistry()

    if not config.web.disable_exporter_metrics:
        ProcessCollector(registry=registry)
        PlatformCollector(registry=registry)
        GCCollector(registry=registry)

    build_info = Info(
        f"{EXPORTER_NAME}_build",
        f"A metric with a constant '1' value labeled by version of {EXPORTER_NAME}.",
        registry=registry,
    )
    build_info.info({"version": __version__, "python_version": platform.python_version()})

    registry.register(collector)
    return registry


class ExporterApp:
    """
    Main exporter application.

    Wires configuration, the statistics client, the collector and the HTTP
    server, and handles graceful shutdown.
    """

    def __init__(self, config: ExporterConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize exporter application.

        Args:
            config: Validated exporter configuration
            logger: Logger instance
        """
        self.config = config
        self.logger = logger or setup_logger(EXPORTER_NAME)
        self.server = None

        self.client = NASClient(
            access_key_id=config.credentials.access_key_id,
            secret_access_key=config.credentials.secret_access_key.get_secret_value(),
            endpoint_url=config.fetch.endpoint_url,
            timeout=config.fetch.request_timeout_seconds,
            logger=self.logger,
        )
        self.fetcher = MetricFetcher(
            self.client,
            window_seconds=config.fetch.window_seconds,
            logger=self.logger,
        )
        self.collector = NASCollector(config.target, self.fetcher, self.logger)
        self.registry = build_registry(config, self.collector)

        include_exporter_metrics = not config.web.disable_exporter_metrics
        self.app = ExporterApplication(
            self.registry,
            telemetry_path=config.web.telemetry_path,
            max_requests=config.web.max_requests,
            instrumentation_registry=self.registry if include_exporter_metrics else None,
        )

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        raise KeyboardInterrupt

    def run(self):
        """Serve metrics until interrupted (SIGTERM/SIGINT)."""
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        host, port = self.config.web.bind_address()
        self.logger.info(f"Starting {EXPORTER_NAME} {__version__}")
        self.logger.info(
            f"Target NAS instance {self.config.target.nas_instance_id} "
            f"in {self.config.target.region}"
        )

        self.server = make_exporter_server(self.app, host, port, self.logger)
        self.logger.info(f"Listening on {self.config.web.listen_address}")

        try:
            self.server.serve_forever()
        except KeyboardInterrupt:
            self.logger.info("Shutting down exporter")
        finally:
            self.server.server_close()
            self.client.close()
            self.logger.info("Exporter stopped")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=EXPORTER_NAME,
        description='Prometheus exporter for NIFCLOUD NAS instance metrics',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Credentials from the environment
  NIFCLOUD_ACCESS_KEY_ID=... NIFCLOUD_SECRET_ACCESS_KEY=... \\
    nifcloud-nas-exporter --nifcloud.nas-instance-id nas001

  # Everything from a configuration file
  nifcloud-nas-exporter --config config/config.yaml
        """
    )

    parser.add_argument('--config', default=None,
                        help='Path to YAML configuration file')
    parser.add_argument('--web.listen-address', dest='listen_address', default=None,
                        help='Address on which to expose metrics and web interface (default: :9123)')
    parser.add_argument('--web.telemetry-path', dest='telemetry_path', default=None,
                        help='Path under which to expose metrics (default: /metrics)')
    parser.add_argument('--web.disable-exporter-metrics', dest='disable_exporter_metrics',
                        action='store_true', default=None,
                        help='Exclude metrics about the exporter itself (process_*, python_*, promhttp_*)')
    parser.add_argument('--web.max-requests', dest='max_requests', type=int, default=None,
                        help='Maximum number of parallel scrape requests. Use 0 to disable (default: 40)')
    parser.add_argument('--nifcloud.nas-instance-id', dest='nas_instance_id', default=None,
                        help='Target NAS instance identifier')
    parser.add_argument('--nifcloud.region', dest='region', default=None,
                        help='NIFCLOUD region name that target instance exists (default: jp-east-1)')
    parser.add_argument('--nifcloud.access-key-id', dest='access_key_id', default=None,
                        help='NIFCLOUD Access Key ID to fetch the metrics')
    parser.add_argument('--nifcloud.secret-access-key', dest='secret_access_key', default=None,
                        help='NIFCLOUD Secret Access Key to fetch the metrics')
    parser.add_argument('--log-level', default=Settings.log_level(),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO or LOG_LEVEL env var)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    """Map parsed flags onto the configuration tree (None means not given)."""
    return {
        "target": {
            "nas_instance_id": args.nas_instance_id,
            "region": args.region,
        },
        "credentials": {
            "access_key_id": args.access_key_id,
            "secret_access_key": args.secret_access_key,
        },
        "web": {
            "listen_address": args.listen_address,
            "telemetry_path": args.telemetry_path,
            "disable_exporter_metrics": args.disable_exporter_metrics,
            "max_requests": args.max_requests,
        },
    }


def main(argv: Optional[List[str]] = None):
    """
    CLI entry point.

    Parses command-line arguments and starts the exporter.
    """
    args = build_parser().parse_args(argv)
    logger = setup_logger(EXPORTER_NAME, args.log_level)

    try:
        config = ConfigLoader.build(args.config, overrides_from_args(args))
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except (ValueError, yaml.YAMLError) as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    try:
        ExporterApp(config, logger).run()
    except Exception as e:
        logger.error(f"Exporter failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
