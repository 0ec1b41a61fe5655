import hashlib

import pytest

from stx_bulk_transfer.c32 import (
    C32Error,
    TESTNET_SINGLE_SIG,
    c32_address,
    c32_address_decode,
    c32_decode,
    c32_encode,
    c32check_decode,
    c32check_encode,
    MAINNET_SINGLE_SIG,
    is_valid_address,
)

KNOWN_ADDRESSES = [
    "STADMRP577SC3MCNP7T3PRSTZBJ75FJ59JGABZTW",
    "ST2WPFYAW85A0YK9ACJR8JGWPM19VWYF90J8P5ZTH",
    "STB44HYPYAT2BB2QE513NSP81HTMYWBJP02HPGK6",
]


@pytest.mark.parametrize("address", KNOWN_ADDRESSES)
def test_known_testnet_addresses_are_valid(address: str) -> None:
    assert is_valid_address(address)
    version, hash160 = c32_address_decode(address)
    assert version == TESTNET_SINGLE_SIG
    assert c32_address(version, hash160) == address


def test_c32_encode_keeps_leading_zero_bytes() -> None:
    assert c32_encode(b"\x00\x00\x01") == "001"
    assert c32_decode("001") == b"\x00\x00\x01"
    assert c32_encode(b"") == ""


def test_c32_decode_accepts_crockford_aliases() -> None:
    assert c32_decode("1o") == c32_decode("10") == c32_decode("L0")


def test_checksum_mismatch_is_rejected() -> None:
    address = KNOWN_ADDRESSES[0]
    # Flip the last character to break the checksum.
    tampered = address[:-1] + ("X" if address[-1] != "X" else "Y")
    assert not is_valid_address(tampered)
    with pytest.raises(C32Error):
        c32check_decode(tampered[1:])


@pytest.mark.parametrize(
    "address",
    [
        "",
        "ST",
        "XTADMRP577SC3MCNP7T3PRSTZBJ75FJ59JGABZTW",
        "STADMRP577SC3MCNP7T3PRSTZBJ75FJ59JGABZTU",
        "0x82a978b3f5962a5b0957d9ee9eef472ee55b42f1",
        "not an address",
    ],
)
def test_malformed_addresses_are_rejected(address: str) -> None:
    assert not is_valid_address(address)


def test_short_hash_is_not_an_address() -> None:
    data = b"\x01" * 19
    checksum = hashlib.sha256(hashlib.sha256(bytes([TESTNET_SINGLE_SIG]) + data).digest()).digest()[:4]
    address = "ST" + c32_encode(data + checksum)
    assert c32check_decode(address[1:]) == (TESTNET_SINGLE_SIG, data)
    assert not is_valid_address(address)


@pytest.mark.parametrize(
    "address, version, hash_hex",
    [
        ("SP000000000000000000002Q6VF78", MAINNET_SINGLE_SIG, "00" * 20),
        (
            "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7",
            MAINNET_SINGLE_SIG,
            "a46ff88886c2ef9762d970b4d2c63678835bd39d",
        ),
    ],
)
def test_reference_address_vectors(address: str, version: int, hash_hex: str) -> None:
    hash160 = bytes.fromhex(hash_hex)

    assert c32_address(version, hash160) == address
    assert c32_address_decode(address) == (version, hash160)
    assert c32check_encode(version, hash160) == address[1:]
    assert is_valid_address(address)
