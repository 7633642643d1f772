"""Bitcoin chain data: headers, blocks and transactions."""

from .block import (
    MAX_BLOCK_WEIGHT,
    Block,
    OutPoint,
    Transactions,
    Tx,
    TxIn,
    TxIns,
    TxOut,
    TxOuts,
    WitnessStack,
)
from .header import HEADER_SIZE, BlockHeader

__all__ = [
    "HEADER_SIZE",
    "MAX_BLOCK_WEIGHT",
    "Block",
    "BlockHeader",
    "OutPoint",
    "Transactions",
    "Tx",
    "TxIn",
    "TxIns",
    "TxOut",
    "TxOuts",
    "WitnessStack",
]
