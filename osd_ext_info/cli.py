#!/usr/bin/env python3
"""
osd-ext-info command line.

Usage:
    osd-ext-info                          # attach to mpv and run until it quits
    osd-ext-info --socket /tmp/mpvsock    # custom IPC socket
    osd-ext-info --schedule               # print computed delays, no mpv needed
    osd-ext-info --print osd-weather      # print one message to stdout
    osd-ext-info --show osd-clock         # show one message in mpv and exit
"""

import argparse
import signal
import sys
import time
from datetime import datetime, timedelta

from osd_ext_info import __version__
from osd_ext_info.config import ConfigError, load_config
from osd_ext_info.host import MpvIpcError, MpvIpcHost
from osd_ext_info.logger import get_logger
from osd_ext_info.overlay import StyleOverlay
from osd_ext_info.registry import build_modality, load_modalities, modality_names, produce_message
from osd_ext_info.scheduler import Scheduler
from osd_ext_info.timing import first_delay, is_set, parse_duration


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osd-ext-info",
        description="Periodic OSD clock / mail / weather messages for mpv")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--socket", help="mpv IPC socket (overrides mpv.ipc_socket)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--only", action="append", choices=modality_names(),
                        metavar="MODALITY", help="limit to these modalities (repeatable)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--schedule", action="store_true",
                      help="print each modality's first fire time and exit")
    mode.add_argument("--print", dest="print_name", choices=modality_names(),
                      metavar="MODALITY", help="print one message to stdout and exit")
    mode.add_argument("--show", dest="show_name", choices=modality_names(),
                      metavar="MODALITY", help="show one message in mpv and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def print_schedule(modalities, now: float):
    print(f"=== Schedule at {datetime.fromtimestamp(now):%Y-%m-%d %H:%M:%S} ===")
    for m in modalities:
        if not m.enabled or not is_set(m.interval):
            state = "disabled" if not m.enabled else "no interval"
            print(f"  {m.name:12s} | {state}")
            continue
        interval = parse_duration(m.interval)
        if interval <= 0:
            print(f"  {m.name:12s} | bad interval '{m.interval}'")
            continue
        delay = first_delay(interval, m.showat, now)
        first = datetime.fromtimestamp(int(now)) + timedelta(seconds=delay)
        key = f" key '{m.key}'" if m.key else ""
        print(f"  {m.name:12s} | every {interval:5d}s | first in {delay:5d}s "
              f"at {first:%H:%M:%S}{key}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"osd-ext-info: {e}", file=sys.stderr)
        return 2
    if args.log_level:
        config.set("logging.level", args.log_level)
    if args.socket:
        config.set("mpv.ipc_socket", args.socket)
    if args.print_name:
        # stdout carries the message itself
        config.set("logging.stream", "stderr")

    # Parent logger: handlers for every osd_ext_info.* module logger
    logger = get_logger("osd_ext_info", config)

    modalities = load_modalities(config, args.only)

    if args.schedule:
        print_schedule(modalities, time.time())
        return 0

    if args.print_name:
        modality = build_modality(args.print_name, config)
        print(produce_message(modality))
        return 0

    host = MpvIpcHost(config.get("mpv.ipc_socket", "/tmp/mpv-socket"),
                      timeout=config.get("mpv.timeout", 2.0), config=config)
    try:
        host.connect()
    except MpvIpcError as e:
        logger.error(str(e))
        return 1

    if args.show_name:
        modality = build_modality(args.show_name, config)
        try:
            StyleOverlay(host, config).render(produce_message(modality), modality)
        except MpvIpcError as e:
            logger.error(str(e))
            return 1
        finally:
            host.close()
        return 0

    scheduler = Scheduler(host, config)
    host.on_shutdown(scheduler.stop)
    signal.signal(signal.SIGTERM, lambda *_: scheduler.stop())

    try:
        armed = scheduler.setup_all(modalities)
    except MpvIpcError as e:
        logger.error(f"Setup failed: {e}")
        scheduler.stop()
        host.close()
        return 1
    if not armed:
        logger.warning("No modality has an interval; nothing to do")

    scheduler.start()
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        scheduler.stop()
        host.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
