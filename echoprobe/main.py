import argparse
import asyncio
import signal
import sys

from .config import ConfigError, ProbeConfig, load_config
from .listener import ListenerManager
from .logger import get_logger, init_logging
from .shutdown import ShutdownSignal, TaskTracker
from .ui import ProbeUI


def install_signal_handlers(shutdown: ShutdownSignal, logger) -> list:
    """
    Wires SIGINT/SIGTERM to the shutdown signal and returns the signals
    installed. Empty where the loop cannot take handlers (Windows), in
    which case KeyboardInterrupt is the only trigger.
    """
    loop = asyncio.get_running_loop()

    def on_signal(name):
        logger.info("Received %s, initiating shutdown...", name)
        shutdown.close()

    installed = []
    try:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, on_signal, sig.name)
            installed.append(sig)
    except (NotImplementedError, RuntimeError):
        pass
    return installed


async def serve(config: ProbeConfig, shutdown: ShutdownSignal = None, ui: ProbeUI = None) -> int:
    """
    Runs the honeypot until shutdown; returns the number of connection or
    scan tasks still running once the grace period ran out.
    """
    logger = get_logger()
    ui = ui or ProbeUI()
    shutdown = shutdown or ShutdownSignal()
    installed = install_signal_handlers(shutdown, logger)

    tasks = TaskTracker(logger)
    manager = ListenerManager(config, tasks=tasks, logger=logger)
    runner = asyncio.create_task(manager.run(config.ports, shutdown))

    try:
        ready = asyncio.create_task(manager.ready.wait())
        await asyncio.wait({runner, ready}, return_when=asyncio.FIRST_COMPLETED)
        ready.cancel()
        if manager.ready.is_set():
            ui.display_listeners(manager.listeners, manager.failed)
        await runner
    finally:
        for sig in installed:
            asyncio.get_running_loop().remove_signal_handler(sig)

    pending = await tasks.drain(config.shutdown_grace)
    if pending:
        logger.warning("%d task(s) still running at shutdown", pending)
    logger.info("Application shutdown complete.")
    ui.display_shutdown(pending)
    return pending


def main(argv=None):
    # 1. CLI Argument Parsing
    parser = argparse.ArgumentParser(description="EchoProbe - echo honeypot that scans its visitors")
    parser.add_argument("--env-file", default=".env", help="Path to a .env file (Default: .env)")
    parser.add_argument("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARN, ERROR)")
    args = parser.parse_args(argv)

    ui = ProbeUI()
    ui.display_welcome()

    # 2. Configuration & Logging (both fatal on failure)
    try:
        config = load_config(env_file=args.env_file, log_level=args.log_level)
        init_logging(config.log_level, config.log_dir)
    except (ConfigError, OSError) as e:
        ui.console.print(f"\n[bold red]Fatal Error:[/bold red] {e}")
        sys.exit(1)

    ui.display_config(config)

    # 3. Run
    try:
        asyncio.run(serve(config, ui=ui))
    except KeyboardInterrupt:
        ui.console.print("\n[yellow]Interrupted by user.[/yellow]")


if __name__ == "__main__":
    main()
