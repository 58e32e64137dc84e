#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
bodyosc main program - body/face tracking to OSC bridge

Features:
- Closest-subject selection with loss/reacquisition
- Joint, hand and face (head pose + animation units) streaming over OSC
- Frame-rate / uptime / transmission status telemetry
"""

import signal
import sys
import threading

from bodyosc.core import logger
from bodyosc.core.config_loader import (
    apply_env_overrides,
    get_config,
    parse_ip_addresses,
    read_ip_address_csv,
)
from bodyosc.core.orchestrator import PipelineOrchestrator
from bodyosc.core.telemetry import TelemetryPublisher
from bodyosc.encoding import PoseEncoder
from bodyosc.monitoring import FrameTimer
from bodyosc.network import OscDispatcher
from bodyosc.sensor import create_sensor
from bodyosc.tracking import SubjectTracker, SubjectTrackerConfig
from preflight_check import preflight_check


def print_banner():
    """Print system information"""
    print("\n" + "=" * 70)
    print("         bodyosc - body/face tracking to OSC bridge")
    print("=" * 70)
    print("\n Tracking: closest body (SpineBase), reacquired on loss")
    print(" Body:     /bodies/{id}/joints/{Joint}  x y z state")
    print("           /bodies/{id}/hands/{Left|Right}  state confidence")
    print(" Face:     /bodies/{id}/face/{Parameter}  value")
    print("\n Ctrl+C - quit")
    print("=" * 70 + "\n")


def build_orchestrator(config) -> PipelineOrchestrator:
    """Create every pipeline component from the config"""
    ip_address_csv = read_ip_address_csv(
        config.resolve_ip_address_file(),
        default_csv=config.network.default_ip_addresses,
    )
    ip_addresses = parse_ip_addresses(ip_address_csv)
    logger.info(f"OSC destinations: {ip_addresses} port={config.network.port}")

    dispatcher = OscDispatcher(
        ip_addresses=ip_addresses,
        port=config.network.port,
        address_prefix=config.network.address_prefix,
        bundle=config.network.bundle,
    )

    return PipelineOrchestrator(
        sensor=create_sensor(config.sensor),
        dispatcher=dispatcher,
        tracker=SubjectTracker(SubjectTrackerConfig.from_config(config.tracking)),
        encoder=PoseEncoder(include_hands=config.network.send_hands),
        timer=FrameTimer(
            window_seconds=config.timer.window_seconds,
            history_size=config.timer.history_size,
        ),
        telemetry=TelemetryPublisher(
            log_enabled=config.telemetry.log_enabled,
            log_interval=config.telemetry.log_interval,
        ),
    )


def run_pipeline(config) -> bool:
    """Run until SIGINT/SIGTERM"""
    shutdown = threading.Event()

    def _signal_handler(signum, frame):
        sig_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM" if signum == signal.SIGTERM else f"Signal {signum}"
        logger.info(f"Exit reason: received {sig_name}")
        shutdown.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    orchestrator = build_orchestrator(config)
    try:
        if not orchestrator.start():
            logger.warning(f"Status: {orchestrator.get_status().uptime_text}")

        logger.info("=" * 60)
        logger.info("bodyosc: streaming")
        logger.info("=" * 60)

        while not shutdown.wait(timeout=1.0):
            pass
    finally:
        orchestrator.stop()
        orchestrator.dispatcher.close()
        logger.info(f"Final stats: {orchestrator.get_stats()}")

    return True


def run_main_system(config_path=None) -> bool:
    """System entry point"""
    print_banner()

    logger.info("Running system preflight checks...")
    if not preflight_check(config_path):
        logger.error("Preflight check failed.")
        return False

    config = get_config(config_path=config_path, reload=True)
    apply_env_overrides(config)

    return run_pipeline(config)


def main():
    """Main entry point"""
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        success = run_main_system(config_path)
        sys.exit(0 if success else 1)
    except Exception as e:
        logger.error(f"Main program error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
