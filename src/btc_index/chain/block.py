"""
Full blocks and transactions.

Transactions use the BIP-144 serialization: when any input carries witness
data, a zero marker byte and a one flag byte follow the version, and the
witness stacks of all inputs follow the outputs. The transaction id always
hashes the legacy serialization without marker, flag and witnesses.
"""

from __future__ import annotations

import io
from typing import IO, Final

from typing_extensions import Self

from btc_index.types import (
    Bytes4,
    Container,
    Hash256,
    Int32,
    Int64,
    StrictBaseModel,
    Uint32,
    VarBytes,
    WireDecodeError,
    WireLengthError,
    WireList,
    read_compact_size,
)
from btc_index.types.wire_base import read_exact

from .header import BlockHeader

MAX_BLOCK_WEIGHT: Final = 4_000_000
"""Consensus limit on block weight. Bounds every count read from a block."""

_SEGWIT_MARKER: Final = 0x00
_SEGWIT_FLAG: Final = 0x01


class OutPoint(Container):
    """Reference to one output of a previous transaction."""

    hash: Hash256
    """Transaction id holding the output."""

    n: Uint32
    """Output index within that transaction."""


class WitnessStack(WireList[VarBytes]):
    """Witness items of one input."""

    ELEMENT_TYPE = VarBytes
    LIMIT = MAX_BLOCK_WEIGHT


class TxIn(Container):
    """
    A transaction input.

    The witness is not part of the input's own encoding. It is written by the
    enclosing transaction after all outputs, so `serialize` covers only the
    legacy fields.
    """

    prev_out: OutPoint
    script_sig: VarBytes
    sequence: Uint32
    witness: WitnessStack = WitnessStack()

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the legacy input fields."""
        return (
            self.prev_out.serialize(stream)
            + self.script_sig.serialize(stream)
            + self.sequence.serialize(stream)
        )

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read the legacy input fields; the witness starts empty."""
        return cls(
            prev_out=OutPoint.deserialize(stream),
            script_sig=VarBytes.deserialize(stream),
            sequence=Uint32.deserialize(stream),
        )


class TxOut(Container):
    """A transaction output."""

    value: Int64
    """Amount in satoshis."""

    script_pubkey: VarBytes


class TxIns(WireList[TxIn]):
    """Inputs of a transaction."""

    ELEMENT_TYPE = TxIn
    LIMIT = MAX_BLOCK_WEIGHT // 41


class TxOuts(WireList[TxOut]):
    """Outputs of a transaction."""

    ELEMENT_TYPE = TxOut
    LIMIT = MAX_BLOCK_WEIGHT // 9


class Tx(Container):
    """A transaction, in legacy or segwit form."""

    version: Int32
    tx_ins: TxIns
    tx_outs: TxOuts
    lock_time: Uint32

    @property
    def segwit(self) -> bool:
        """Whether any input carries a non-empty witness stack."""
        return any(len(tx_in.witness) > 0 for tx_in in self.tx_ins)

    @property
    def txid(self) -> Hash256:
        """Double SHA-256 of the serialization without witness data."""
        with io.BytesIO() as stream:
            self._write(stream, include_witness=False)
            return Hash256.of(stream.getvalue())

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the transaction, in extended form when it has witnesses."""
        return self._write(stream, include_witness=self.segwit)

    def _write(self, stream: IO[bytes], *, include_witness: bool) -> int:
        written = self.version.serialize(stream)
        if include_witness:
            written += stream.write(bytes([_SEGWIT_MARKER, _SEGWIT_FLAG]))
        written += self.tx_ins.serialize(stream)
        written += self.tx_outs.serialize(stream)
        if include_witness:
            written += sum(tx_in.witness.serialize(stream) for tx_in in self.tx_ins)
        return written + self.lock_time.serialize(stream)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """
        Read a transaction in either form.

        A zero input count right after the version is the segwit marker.

        Raises:
            WireDecodeError: If the marker is followed by an unknown flag.
        """
        version = Int32.deserialize(stream)

        count = read_compact_size(stream)
        extended = count == _SEGWIT_MARKER
        if extended:
            flag = read_exact(stream, 1, cls.__name__)[0]
            if flag != _SEGWIT_FLAG:
                raise WireDecodeError(cls.__name__, f"unknown segwit flag {flag:#04x}")
            tx_ins = TxIns.deserialize(stream)
        else:
            # The count was already consumed; read the inputs it announced.
            if count > TxIns.LIMIT:
                raise WireLengthError(TxIns.__name__, limit=TxIns.LIMIT, actual=count)
            tx_ins = TxIns(data=[TxIn.deserialize(stream) for _ in range(count)])

        tx_outs = TxOuts.deserialize(stream)

        if extended:
            tx_ins = TxIns(
                data=[
                    TxIn(
                        prev_out=tx_in.prev_out,
                        script_sig=tx_in.script_sig,
                        sequence=tx_in.sequence,
                        witness=WitnessStack.deserialize(stream),
                    )
                    for tx_in in tx_ins
                ]
            )

        return cls(
            version=version,
            tx_ins=tx_ins,
            tx_outs=tx_outs,
            lock_time=Uint32.deserialize(stream),
        )


class Transactions(WireList[Tx]):
    """Transactions of a block."""

    ELEMENT_TYPE = Tx
    LIMIT = MAX_BLOCK_WEIGHT // 60


class Block(StrictBaseModel):
    """
    A full block as handed to callers.

    Unlike the wire `block` message it records which network it came from.
    """

    magic: Bytes4
    """Network magic of the peer the block was fetched from."""

    header: BlockHeader
    txs: Transactions

    @property
    def hash(self) -> Hash256:
        """The block hash (the header hash)."""
        return self.header.hash
