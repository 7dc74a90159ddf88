#!/usr/bin/env python3
"""
WebSocket Client for the Simulated Robot

This module connects the robot to a driver station / simulation server. The
server paces the robot: every driver_station message is one control cycle.
The client steps the robot, records telemetry to CSV and replies with a
telemetry message. An end message (or a shutdown signal) stops the loop.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional, Union

import websockets

from swerve_control.component_modes import ComponentMode, parse_component_flags
from swerve_control.config import (
    TERM_BLUE,
    TERM_ORANGE,
    TERM_RESET,
    WS_MAX_RETRY_DELAY_SECONDS,
    WS_RETRY_DELAY_SECONDS,
    WS_TIMEOUT_SECONDS,
    WS_URI,
)
from swerve_control.data_collector import DataCollector
from swerve_control.errors import ConfigurationError
from swerve_control.robot import DriverStationState, Robot


LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class CustomFormatter(logging.Formatter):
    """Prints INFO records as bare messages; other levels keep time and level."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        timestamp = self.formatTime(record, self.datefmt)
        return f"{timestamp} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Install the root log handler.

    Verbose mode logs everything from DEBUG up with timestamps. The default
    keeps cycle status lines clean and only stamps warnings and errors.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(CustomFormatter(datefmt=LOG_DATEFMT))
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(handler)


class RobotClient:
    """Runs the simulated robot against a driver station server.

    Attributes:
        uri: WebSocket URI to connect to.
        robot: Robot container being stepped.
        data_collector: Handles CSV file logging.
        should_stop: Flag indicating whether to stop the control loop.
    """

    def __init__(
        self,
        uri: str,
        output_dir: str = ".",
        component_mode: Optional[ComponentMode] = None,
        run_dir: Optional[str] = None,
    ) -> None:
        """
        Args:
            uri: Server URI, ws:// or wss://.
            output_dir: Parent of the results/ directory.
            component_mode: Which components run real, simulated or disabled.
            run_dir: Write CSVs here instead of a new timestamped run directory.

        Raises:
            ConfigurationError: If the URI scheme is not ws or wss.
        """
        if not uri or not uri.startswith(("ws://", "wss://")):
            raise ConfigurationError(f"Server URI must use ws:// or wss://, got {uri!r}")

        self.uri: str = uri
        self.should_stop: bool = False

        self.component_mode = component_mode or ComponentMode()
        logging.info(f"{TERM_BLUE}Components: {self.component_mode}{TERM_RESET}")

        self.data_collector = DataCollector(output_dir=output_dir, run_dir=run_dir)
        self.robot = Robot(component_mode=self.component_mode)
        self.cycles: int = 0

    def process_driver_station_message(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Run one robot cycle from a driver_station message.

        Args:
            data: Parsed driver_station message.

        Returns:
            Telemetry message to send back.
        """
        ds = DriverStationState.from_message(data)
        timestamp = self.robot.time

        record = self.robot.step(ds)
        self.data_collector.log_drive(timestamp, record)
        self.data_collector.log_mechanisms(timestamp, self.robot.mechanism_diagnostics())

        self.cycles += 1
        return self.robot.telemetry(record)

    def parse_and_route_message(self, message: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Parse an incoming message and route it to the matching handler.

        Malformed messages are logged and dropped; the next cycle is the retry.

        Args:
            message: Raw JSON message string or bytes from WebSocket.

        Returns:
            Reply to send, or None when there is nothing to send.
        """
        try:
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            data = json.loads(message)
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

            message_type = data.get("message_type")

            if message_type == "driver_station":
                return self.process_driver_station_message(data)
            if message_type == "end":
                logging.info(
                    f"{TERM_BLUE}\033[1m→ Session ended after {self.cycles} cycles{TERM_RESET}"
                )
                self.should_stop = True
            else:
                logging.debug(f"Ignoring message type {message_type!r}")

        except json.JSONDecodeError as e:
            logging.error(f"Dropped malformed message: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logging.error(f"Dropped driver station message: {e}")
        except Exception as e:
            logging.error(f"Unexpected error handling message: {e}", exc_info=True)

        return None

    async def run_control_loop(self) -> None:
        """Connect to the server and step the robot for every cycle message.

        Maintains the connection with automatic retry and exponential backoff
        until should_stop is set (end message or shutdown signal).
        """
        retry_delay = WS_RETRY_DELAY_SECONDS

        while not self.should_stop:
            try:
                async with websockets.connect(self.uri) as websocket:
                    logging.info(f"{TERM_BLUE}✓ Connected to driver station{TERM_RESET}")
                    retry_delay = WS_RETRY_DELAY_SECONDS

                    while not self.should_stop:
                        try:
                            message = await asyncio.wait_for(
                                websocket.recv(), timeout=WS_TIMEOUT_SECONDS
                            )
                        except asyncio.TimeoutError:
                            logging.warning(
                                f"{TERM_ORANGE}No driver station message in "
                                f"{WS_TIMEOUT_SECONDS:.1f}s{TERM_RESET}"
                            )
                            continue
                        except websockets.exceptions.ConnectionClosed:
                            logging.warning("Driver station closed the connection")
                            break

                        reply = self.parse_and_route_message(message)
                        if reply is not None:
                            await websocket.send(json.dumps(reply))

            except (OSError, websockets.exceptions.WebSocketException) as e:
                if self.should_stop:
                    break
                logging.error(f"Cannot reach {self.uri}: {e}")
                logging.info(f"Reconnecting in {retry_delay:.1f}s")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, WS_MAX_RETRY_DELAY_SECONDS)

    def stop(self) -> None:
        """Signal the client to stop."""
        self.should_stop = True

    def __enter__(self) -> "RobotClient":
        self.data_collector.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.data_collector.cleanup()


async def main(component_mode: Optional[ComponentMode] = None, uri: str = WS_URI) -> None:
    """Run one client session until the server ends it or a signal arrives."""
    with RobotClient(uri, component_mode=component_mode) as client:
        loop = asyncio.get_running_loop()

        def signal_handler() -> None:
            """Stop the loop on SIGINT or SIGTERM."""
            logging.info("\nStopping robot client")
            client.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        await client.run_control_loop()


def run(argv=None) -> None:
    """Parse command-line arguments and run the client."""
    component_mode, remaining_args = parse_component_flags(argv)

    parser = argparse.ArgumentParser(
        description="Swerve robot simulation client for a driver station server"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log at DEBUG level with timestamps"
    )
    parser.add_argument("--uri", default=WS_URI, help=f"Server URI (default: {WS_URI})")
    args = parser.parse_args(remaining_args)

    setup_logging(args.verbose)

    try:
        asyncio.run(main(component_mode=component_mode, uri=args.uri))
    except KeyboardInterrupt:
        logging.info("\nInterrupted")
        sys.exit(0)


if __name__ == "__main__":
    run()
