"""Funding — the one-shot initialization of a farm."""

from lpfarm.funding.guard import InitializationGuard, decode_start_block, encode_start_block

__all__ = [
    "InitializationGuard",
    "decode_start_block",
    "encode_start_block",
]
