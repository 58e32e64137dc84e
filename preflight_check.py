#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
bodyosc preflight check

Verifies, before the pipeline starts:
- numpy and python-osc can be imported
- system_config.json exists and parses
- the OSC port is usable and the destination list resolves
- the configured sensor driver is known

Usage:
    python preflight_check.py [path/to/system_config.json]
"""

import sys
from pathlib import Path

current_dir = Path(__file__).parent

KNOWN_SENSOR_DRIVERS = ("mock", "none")


def _check_dependencies():
    try:
        import numpy as np
        print(f"[OK] NumPy {np.__version__}")
    except ImportError:
        print("[FAIL] NumPy not installed (pip install numpy)")
        return False

    try:
        from pythonosc.udp_client import SimpleUDPClient  # noqa: F401
        print("[OK] python-osc available")
    except ImportError:
        print("[FAIL] python-osc not installed (pip install python-osc)")
        return False

    return True


def _locate_config(config_path):
    if config_path is not None:
        return Path(config_path)
    for candidate in (current_dir / "system_config.json", current_dir / "config" / "system_config.json"):
        if candidate.exists():
            return candidate
    return current_dir / "system_config.json"


def _check_network(config):
    from bodyosc.core.config_loader import parse_ip_addresses, read_ip_address_csv

    port = config.network.port
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        print(f"[FAIL] network.port must be an integer in 1..65535, got {port!r}")
        return False
    print(f"[OK] OSC port {port}")

    ip_file = config.resolve_ip_address_file()
    if ip_file is None:
        print(f"[WARN] No destination file, default destinations apply: {config.network.default_ip_addresses}")
    addresses = parse_ip_addresses(read_ip_address_csv(ip_file, config.network.default_ip_addresses))
    if not addresses:
        print("[FAIL] Destination list is empty")
        return False
    print(f"[OK] Destinations: {', '.join(addresses)}")
    return True


def preflight_check(config_path=None):
    """
    Run all checks

    Args:
        config_path: configuration file (optional, auto-detected)

    Returns:
        bool: True when the pipeline can start
    """
    print("\n" + "=" * 70)
    print("bodyosc preflight")
    print("=" * 70)
    print(f"\n[OK] Python {sys.version_info.major}.{sys.version_info.minor}")

    if not _check_dependencies():
        return False

    config_file = _locate_config(config_path)
    if not config_file.exists():
        print(f"[FAIL] Config file not found: {config_file}")
        return False

    try:
        from bodyosc.core.config_loader import load_config
        config = load_config(config_file)
    except (OSError, ValueError) as e:
        print(f"[FAIL] Config file unreadable: {e}")
        return False
    print(f"[OK] Config file {config_file}")

    if not _check_network(config):
        return False

    driver = str(config.sensor.driver).lower()
    if driver in KNOWN_SENSOR_DRIVERS:
        print(f"[OK] Sensor driver '{driver}'")
    else:
        print(f"[WARN] Unknown sensor driver '{driver}', the pipeline will run without data")

    print("\n" + "=" * 70)
    print("Preflight passed")
    print("=" * 70 + "\n")
    return True


if __name__ == "__main__":
    sys.exit(0 if preflight_check(sys.argv[1] if len(sys.argv) > 1 else None) else 1)
