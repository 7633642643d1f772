"""
btc-index CLI entry point.

Connect to a Bitcoin node, index its headers above known anchors, and print
the resulting chain.

Usage::

    python -m btc_index --peer 127.0.0.1:8333 --anchors anchors.yaml
    python -m btc_index --peer node.example:18444 --network regtest --anchor 0:0f9188f1...
    python -m btc_index --peer 127.0.0.1 --anchors anchors.yaml --blocks --follow

Anchors file::

    # height: hash, or height: [hash, ...]
    0: "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"

Options:
    --peer       Peer address, host[:port] (required)
    --anchors    YAML file mapping heights to block hashes
    --anchor     HEIGHT:HASH anchor (can be repeated)
    --timeout    Seconds to wait for the handshake and each request (default: 30)
    --network    mainnet, testnet, regtest or signet (default: $BTC_INDEX_NETWORK or mainnet)
    --blocks     Also fetch every indexed block
    --follow     After indexing, fetch newly announced blocks until Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from pathlib import Path
from typing import get_args

import yaml

from btc_index.chain import Block, BlockHeader
from btc_index.config import BTC_INDEX_NETWORK
from btc_index.errors import SyncError, SyncInterruptedError
from btc_index.sync import REQUEST_TIMEOUT, SyncConfig, open_index
from btc_index.types import Hash256
from btc_index.wire import Network

logger = logging.getLogger(__name__)


def parse_anchors(data: object) -> dict[int, list[Hash256]]:
    """
    Convert loaded YAML into anchors.

    Accepts a mapping from integer heights to a display-hex hash or a list of
    them.

    Raises:
        ValueError: If the structure, a height or a hash is invalid.
    """
    if not isinstance(data, dict):
        raise ValueError("Anchors must be a mapping of height to hash")

    anchors: dict[int, list[Hash256]] = {}
    for height, value in data.items():
        if not isinstance(height, int) or isinstance(height, bool) or height < 0:
            raise ValueError(f"Anchor height {height!r} is not a non-negative integer")
        hashes = [value] if isinstance(value, str) else value
        if not isinstance(hashes, list) or not all(isinstance(h, str) for h in hashes):
            raise ValueError(f"Anchor at height {height} must be a quoted hash or list of hashes")
        anchors[height] = [Hash256.from_hex(h) for h in hashes]
    return anchors


def load_anchors_file(path: Path | str) -> dict[int, list[Hash256]]:
    """
    Load anchors from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the anchors are malformed.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        return parse_anchors(yaml.safe_load(f))


def parse_anchor_arg(text: str) -> tuple[int, Hash256]:
    """Parse a ``HEIGHT:HASH`` command line anchor."""
    height, sep, display_hex = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"Anchor {text!r} must be HEIGHT:HASH")
    try:
        return int(height), Hash256.from_hex(display_hex)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid anchor {text!r}: {e}") from e


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        return f"{timestamp} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def format_header(height: int, header: BlockHeader) -> str:
    """One output line per indexed header."""
    return f"{height} {header.hash} time={int(header.time)}"


def format_block(block: Block) -> str:
    """One output line per fetched block."""
    segwit = sum(1 for tx in block.txs if tx.segwit)
    return f"block {block.hash} txs={len(block.txs)} segwit={segwit}"


async def run_index(
    peer: str,
    anchors: dict[int, list[Hash256]],
    config: SyncConfig,
    read_blocks: bool,
    follow: bool,
) -> None:
    """Index the peer's chain, print it, and optionally follow new blocks."""
    async with await open_index(peer, config.timeout, anchors, config=config) as index:
        header = index.header()
        while header is not None:
            print(format_header(index.current_height(), header))
            if read_blocks:
                print(format_block(await index.read_block()))
            if not index.advance():
                break
            header = index.header()

        if not follow:
            return

        # Ctrl-C ends the wait through the cancel event instead of tearing down the loop.
        cancel = asyncio.Event()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, cancel.set)
        except NotImplementedError:
            logger.debug("Signal handlers unsupported, Ctrl-C interrupts the event loop")

        logger.info("Waiting for new blocks, press Ctrl-C to stop")
        try:
            while True:
                for block in await index.wait_for_blocks(cancel):
                    print(format_block(block))
        except SyncInterruptedError:
            logger.info("Stopped following")


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Bitcoin header-chain indexer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--peer",
        required=True,
        help="Peer address, host[:port]",
    )
    parser.add_argument(
        "--anchors",
        type=Path,
        default=None,
        help="YAML file mapping heights to block hashes",
    )
    parser.add_argument(
        "--anchor",
        action="append",
        default=[],
        type=parse_anchor_arg,
        dest="anchor_args",
        help="HEIGHT:HASH anchor (can be repeated)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=REQUEST_TIMEOUT,
        help=f"Seconds to wait for the handshake and each request (default: {REQUEST_TIMEOUT})",
    )
    parser.add_argument(
        "--network",
        choices=get_args(Network),
        default=BTC_INDEX_NETWORK,
        help=f"Network to connect to (default: {BTC_INDEX_NETWORK})",
    )
    parser.add_argument(
        "--blocks",
        action="store_true",
        help="Also fetch every indexed block",
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="After indexing, fetch newly announced blocks until Ctrl-C",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )

    args = parser.parse_args()

    setup_logging(args.verbose, args.no_color)

    anchors: dict[int, list[Hash256]] = {}
    if args.anchors is not None:
        try:
            anchors = load_anchors_file(args.anchors)
        except (OSError, yaml.YAMLError, ValueError) as e:
            parser.error(f"Cannot load anchors from {args.anchors}: {e}")
    for height, anchor_hash in args.anchor_args:
        anchors.setdefault(height, []).append(anchor_hash)
    if not anchors:
        parser.error("Give at least one anchor with --anchors or --anchor")

    config = SyncConfig(network=args.network, timeout=args.timeout)

    try:
        asyncio.run(run_index(args.peer, anchors, config, args.blocks, args.follow))
    except SyncError as e:
        logger.error("%s", e)
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
