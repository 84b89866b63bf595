"""
allowguard/core/addresses.py

Address helpers. Every address that enters the engine is checksummed
here, once, and compared in checksummed form everywhere else.
"""

from typing import Union

from eth_utils import is_address, to_checksum_address

from allowguard.core.exceptions import ValidationError


# An indexed address topic is a 32-byte word; the address is the last 20 bytes.
TOPIC_BYTES   = 32
ADDRESS_BYTES = 20


def checksum(address: str) -> str:
    """Return the EIP-55 checksummed form of `address`."""
    if not isinstance(address, str) or not is_address(address):
        raise ValidationError("Invalid address", {"address": address})
    return to_checksum_address(address)


def topic_to_address(topic: Union[str, bytes]) -> str:
    """
    Extract the right-aligned address from an indexed event topic.

    Accepts a 0x-prefixed hex string or raw bytes (web3 returns HexBytes).
    """
    if isinstance(topic, (bytes, bytearray)):
        raw = bytes(topic)
    elif isinstance(topic, str):
        hex_part = topic[2:] if topic.startswith(("0x", "0X")) else topic
        try:
            raw = bytes.fromhex(hex_part)
        except ValueError:
            raise ValidationError("Topic is not valid hex", {"topic": topic})
    else:
        raise ValidationError("Unsupported topic type", {"type": type(topic).__name__})

    if len(raw) != TOPIC_BYTES:
        raise ValidationError(
            "Topic must be exactly 32 bytes",
            {"length": len(raw)},
        )
    return to_checksum_address("0x" + raw[TOPIC_BYTES - ADDRESS_BYTES:].hex())


def address_to_topic(address: str) -> str:
    """Left-pad an address into the 32-byte topic form used in log filters."""
    return "0x" + "0" * 24 + checksum(address)[2:].lower()


def shorten_address(address: str) -> str:
    """0x1234...abcd - for narrow displays."""
    return f"{address[:6]}...{address[-4:]}"
