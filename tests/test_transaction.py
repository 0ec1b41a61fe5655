from dataclasses import replace

from eth_keys import keys as eth_keys
import pytest

from stx_bulk_transfer.clarity import (
    EncodingError,
    ListCV,
    StandardPrincipalCV,
    TupleCV,
    UIntCV,
)
from stx_bulk_transfer.keys import StacksPrivateKey, sha512_256
from stx_bulk_transfer.network import ChainID, TransactionVersion
from stx_bulk_transfer.transaction import (
    AuthType,
    ContractCallPayload,
    FungibleConditionCode,
    KeyEncoding,
    SingleSigSpendingCondition,
    STXPostCondition,
    StacksTransaction,
    make_contract_call,
    make_sighash_presign,
    split_contract_identifier,
)

SENDER_KEY = "b244296d5907de9864c0b0d51f98a13c52890be0404e83f273144cd5b9960eed01"
CONTRACT = "STB44HYPYAT2BB2QE513NSP81HTMYWBJP02HPGK6.send-many"

# Fixed-size prefix: version, chain id, auth type, spending condition.
SIGNATURE_OFFSET = 1 + 4 + 1 + 1 + 20 + 8 + 8 + 1
ANCHOR_OFFSET = SIGNATURE_OFFSET + 65


def _build(**kwargs):
    options = dict(
        version=TransactionVersion.TESTNET,
        chain_id=ChainID.TESTNET,
        payload=ContractCallPayload.from_identifier(CONTRACT, "send-many", [UIntCV(7)]),
        private_key=StacksPrivateKey.from_hex(SENDER_KEY),
        nonce=3,
        fee=500,
    )
    options.update(kwargs)
    return make_contract_call(**options)


def test_header_and_spending_condition_layout() -> None:
    raw = _build().serialize()

    assert raw[0] == 0x80
    assert raw[1:5] == bytes.fromhex("80000000")
    assert raw[5] == AuthType.STANDARD
    assert raw[6] == 0x00
    assert int.from_bytes(raw[27:35], "big") == 3
    assert int.from_bytes(raw[35:43], "big") == 500
    assert raw[43] == 0x00
    assert raw[ANCHOR_OFFSET] == 0x03
    assert raw[ANCHOR_OFFSET + 1] == 0x02
    assert raw[ANCHOR_OFFSET + 2 : ANCHOR_OFFSET + 6] == b"\x00\x00\x00\x00"


def test_payload_names_contract_and_function() -> None:
    raw = _build().serialize()
    payload = raw[ANCHOR_OFFSET + 6 :]

    assert payload[0] == 0x02
    assert payload[22:32] == b"\x09send-many"
    assert payload[32:42] == b"\x09send-many"
    assert payload[42:46] == b"\x00\x00\x00\x01"
    assert payload[46:] == UIntCV(7).serialize()


def test_signature_covers_fee_and_nonce() -> None:
    key = StacksPrivateKey.from_hex(SENDER_KEY)
    tx = _build(private_key=key)
    condition = tx.spending_condition

    presign = make_sighash_presign(tx.initial_sighash(), AuthType.STANDARD, condition.fee, condition.nonce)
    sig = condition.signature
    recovered = eth_keys.Signature(
        vrs=(sig[0], int.from_bytes(sig[1:33], "big"), int.from_bytes(sig[33:], "big"))
    ).recover_public_key_from_msg_hash(presign)

    assert recovered.to_compressed_bytes() == key.public_key


def test_txid_is_sha512_256_of_serialization() -> None:
    tx = _build()
    assert tx.txid() == sha512_256(tx.serialize()).hex()
    assert tx.hex() == tx.serialize().hex()
    assert tx.hex() == tx.hex().lower()


def test_fee_is_estimated_from_length_when_omitted() -> None:
    tx = _build(fee=None, fee_rate=2)
    assert tx.spending_condition.fee == 2 * len(tx.serialize())


def test_uncompressed_key_sets_key_encoding() -> None:
    raw = _build(private_key=StacksPrivateKey.from_hex(SENDER_KEY[:64])).serialize()
    assert raw[43] == 0x01


def test_post_conditions_are_serialized() -> None:
    condition = STXPostCondition(
        address_version=26,
        address_hash=b"\x11" * 20,
        condition_code=FungibleConditionCode.EQUAL,
        amount=150,
    )
    raw = _build(post_conditions=[condition]).serialize()

    assert raw[ANCHOR_OFFSET + 2 : ANCHOR_OFFSET + 6] == b"\x00\x00\x00\x01"
    body = raw[ANCHOR_OFFSET + 6 : ANCHOR_OFFSET + 6 + 32]
    assert body == b"\x00\x02\x1a" + b"\x11" * 20 + b"\x01" + (150).to_bytes(8, "big")


@pytest.mark.parametrize(
    "identifier",
    [
        "not-deployed",
        "STB44HYPYAT2BB2QE513NSP81HTMYWBJP02HPGK6",
        "bogus.send-many",
        "STB44HYPYAT2BB2QE513NSP81HTMYWBJP02HPGK6.1bad",
    ],
)
def test_split_contract_identifier_rejects_malformed(identifier: str) -> None:
    with pytest.raises(EncodingError):
        split_contract_identifier(identifier)


def test_nonce_must_fit_u64() -> None:
    with pytest.raises(EncodingError):
        _build(nonce=2**64)


SIGNER_HASH = "a46ff88886c2ef9762d970b4d2c63678835bd39d"
RECIPIENT_HASH = "22" * 20
FIXED_SIGNATURE = "01" + "11" * 32 + "22" * 32

# A testnet send-many call paying 150 uSTX, laid out field by field.
EXPECTED_TX_HEX = "".join(
    [
        "80",  # version
        "80000000",  # chain id
        "04",  # standard auth
        "00",  # P2PKH hash mode
        SIGNER_HASH,
        "0000000000000005",  # nonce
        "00000000000000b4",  # fee
        "00",  # compressed key
        FIXED_SIGNATURE,
        "03",  # anchor mode any
        "02",  # post-condition mode deny
        "00000001",
        "00" "02" "1a" + SIGNER_HASH + "01" "0000000000000096",
        "02",  # contract call
        "16" + "00" * 20,
        "09" + b"send-many".hex(),
        "09" + b"send-many".hex(),
        "00000001",
        "0b" "00000001",
        "0c" "00000002",
        "02" + b"to".hex() + "05" "1a" + RECIPIENT_HASH,
        "04" + b"ustx".hex() + "01" + "00" * 15 + "96",
    ]
)


def _fixed_transaction() -> StacksTransaction:
    signer = bytes.fromhex(SIGNER_HASH)
    recipient = TupleCV.from_mapping(
        {
            "ustx": UIntCV(150),
            "to": StandardPrincipalCV(26, bytes.fromhex(RECIPIENT_HASH)),
        }
    )
    return StacksTransaction(
        version=TransactionVersion.TESTNET,
        chain_id=ChainID.TESTNET,
        spending_condition=SingleSigSpendingCondition(
            signer=signer,
            nonce=5,
            fee=180,
            key_encoding=KeyEncoding.COMPRESSED,
            signature=bytes.fromhex(FIXED_SIGNATURE),
        ),
        payload=ContractCallPayload.from_identifier(
            "SP000000000000000000002Q6VF78.send-many", "send-many", [ListCV.of([recipient])]
        ),
        post_conditions=[
            STXPostCondition(
                address_version=26,
                address_hash=signer,
                condition_code=FungibleConditionCode.EQUAL,
                amount=150,
            )
        ],
    )


def test_fixed_transaction_matches_wire_layout() -> None:
    tx = _fixed_transaction()

    assert tx.hex() == EXPECTED_TX_HEX
    assert tx.txid() == sha512_256(bytes.fromhex(EXPECTED_TX_HEX)).hex()


def test_initial_sighash_clears_nonce_fee_and_signature() -> None:
    cleared_hex = (
        EXPECTED_TX_HEX.replace("0000000000000005" "00000000000000b4", "00" * 16, 1)
        .replace(FIXED_SIGNATURE, "00" * 65, 1)
    )
    tx = _fixed_transaction()

    assert tx.initial_sighash() == sha512_256(bytes.fromhex(cleared_hex))
    # Clearing must not touch the transaction being signed.
    assert tx.hex() == EXPECTED_TX_HEX


def test_presign_appends_auth_type_fee_and_nonce() -> None:
    cur = bytes(range(32))
    expected = sha512_256(cur + bytes.fromhex("04" "00000000000000b4" "0000000000000005"))
    assert make_sighash_presign(cur, AuthType.STANDARD, 180, 5) == expected


def test_sha512_256_known_answer() -> None:
    assert sha512_256(b"").hex() == (
        "c672b8d1ef56ed28ab87c3622c5114069bdd3ad7b8f9737498d0c01ecef0967a"
    )


def test_contract_name_length_is_bounded() -> None:
    address = CONTRACT.split(".")[0]
    longest = "a" * 40
    assert split_contract_identifier(f"{address}.{longest}")[2] == longest
    with pytest.raises(EncodingError):
        split_contract_identifier(f"{address}.{longest}a")


def test_signing_replaces_only_the_signature() -> None:
    tx = _fixed_transaction()
    key = StacksPrivateKey.from_hex(SENDER_KEY)
    tx.sign(key)

    raw = tx.serialize()
    expected = bytes.fromhex(EXPECTED_TX_HEX)
    assert raw[:SIGNATURE_OFFSET] == expected[:SIGNATURE_OFFSET]
    assert raw[ANCHOR_OFFSET:] == expected[ANCHOR_OFFSET:]
    assert replace(tx.spending_condition, signature=bytes.fromhex(FIXED_SIGNATURE)).serialize() == (
        expected[6:ANCHOR_OFFSET]
    )
