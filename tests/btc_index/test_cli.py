"""Tests for the command line helpers."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pytest

from btc_index import __main__ as cli
from btc_index.chain import BlockHeader
from btc_index.types import Hash256
from tests.btc_index.helpers import GENESIS_HASH, make_hash


class TestParseAnchors:
    """Tests for turning loaded YAML into anchors."""

    def test_single_hash(self) -> None:
        """A quoted hash anchors one block at its height."""
        anchors = cli.parse_anchors({0: GENESIS_HASH})

        assert anchors == {0: [Hash256.from_hex(GENESIS_HASH)]}

    def test_list_of_hashes(self) -> None:
        """Competing blocks at one height are given as a list."""
        first, second = make_hash(1), make_hash(2)

        anchors = cli.parse_anchors({5: [str(first), str(second)], 9: str(first)})

        assert anchors == {5: [first, second], 9: [first]}

    @pytest.mark.parametrize(
        "data",
        [
            [GENESIS_HASH],
            {-1: GENESIS_HASH},
            {True: GENESIS_HASH},
            {"0": GENESIS_HASH},
            {0: 12345},
            {0: [GENESIS_HASH, 7]},
            {0: "zz"},
            {0: "00ff"},
        ],
    )
    def test_invalid(self, data: object) -> None:
        """Malformed structures, heights and hashes are rejected."""
        with pytest.raises(ValueError):
            cli.parse_anchors(data)


class TestLoadAnchorsFile:
    """Tests for reading an anchors file."""

    def test_load(self, tmp_path: Path) -> None:
        """Hashes must be quoted so YAML keeps them as strings."""
        path = tmp_path / "anchors.yaml"
        path.write_text(f'# genesis\n0: "{GENESIS_HASH}"\n', encoding="utf-8")

        assert cli.load_anchors_file(path) == {0: [Hash256.from_hex(GENESIS_HASH)]}

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file is reported as such."""
        with pytest.raises(FileNotFoundError):
            cli.load_anchors_file(tmp_path / "absent.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty document is not a mapping."""
        path = tmp_path / "anchors.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ValueError):
            cli.load_anchors_file(path)


class TestParseAnchorArg:
    """Tests for HEIGHT:HASH arguments."""

    def test_valid(self) -> None:
        """Height and hash are split at the first colon."""
        assert cli.parse_anchor_arg(f"0:{GENESIS_HASH}") == (0, Hash256.from_hex(GENESIS_HASH))

    @pytest.mark.parametrize("text", ["nohash", f"x:{GENESIS_HASH}", "3:abc"])
    def test_invalid(self, text: str) -> None:
        """Bad arguments become argparse errors."""
        with pytest.raises(argparse.ArgumentTypeError):
            cli.parse_anchor_arg(text)


class TestFormatting:
    """Tests for output lines."""

    def test_format_header(self, genesis_header: BlockHeader) -> None:
        """A header line carries height, display hash and timestamp."""
        assert cli.format_header(0, genesis_header) == f"0 {GENESIS_HASH} time=1231006505"


class TestMain:
    """Tests for argument handling in main()."""

    def test_requires_an_anchor(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Running without anchors is a usage error."""
        monkeypatch.setattr(sys, "argv", ["btc-index", "--peer", "127.0.0.1"])
        monkeypatch.setattr(cli, "setup_logging", lambda verbose, no_color: None)

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 2

    def test_bad_anchors_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """An unreadable anchors file is a usage error."""
        argv = ["btc-index", "--peer", "127.0.0.1", "--anchors", str(tmp_path / "absent.yaml")]
        monkeypatch.setattr(sys, "argv", argv)
        monkeypatch.setattr(cli, "setup_logging", lambda verbose, no_color: None)

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 2
