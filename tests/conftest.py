"""
Pytest configuration and fixtures for contract script ABI tests.
"""

import copy
import json

import pytest

from contract import ContractDefinition


PUBKEY_HASH = "0d8a5d3e0e3a7d0c5a2b4e6f1a9c8b7d6e5f4a3b"

P2PKH_CODE_HEX = (
    "0014" + PUBKEY_HASH
    + "610079527a75517a75615179a95179876952795279ac7777776a"
)

P2PKH_CODE_ASM = (
    "0 " + PUBKEY_HASH + " OP_NOP 0 OP_PICK OP_2 OP_ROLL OP_DROP OP_1 OP_ROLL OP_DROP "
    "OP_NOP OP_1 OP_PICK OP_HASH160 OP_1 OP_PICK OP_EQUAL OP_VERIFY OP_2 OP_PICK "
    "OP_2 OP_PICK OP_CHECKSIG OP_NIP OP_NIP OP_NIP OP_RETURN"
)


P2PKH_ARTIFACT = {
    "version": 9,
    "compilerVersion": "1.19.0",
    "contract": "P2PKH",
    "md5": "0c9f3e1e7a3c4b9d8f2a6e5d4c3b2a19",
    "structs": [],
    "library": [],
    "alias": [],
    "abi": [
        {
            "type": "function",
            "name": "unlock",
            "index": 0,
            "params": [
                {"name": "sig", "type": "Sig"},
                {"name": "pubKey", "type": "PubKey"},
            ],
        },
        {
            "type": "constructor",
            "params": [{"name": "pubKeyHash", "type": "Ripemd160"}],
        },
    ],
    "stateProps": [],
    "asm": (
        "OP_0 $pubKeyHash OP_NOP 0 OP_PICK OP_2 OP_ROLL OP_DROP OP_1 OP_ROLL OP_DROP "
        "OP_NOP OP_1 OP_PICK OP_HASH160 OP_1 OP_PICK OP_EQUAL OP_VERIFY OP_2 OP_PICK "
        "OP_2 OP_PICK OP_CHECKSIG OP_NIP OP_NIP OP_NIP"
    ),
}


SIMPLE_ARTIFACT = {
    "version": 9,
    "contract": "Simple",
    "abi": [
        {
            "type": "function",
            "name": "equal",
            "index": 0,
            "params": [{"name": "y", "type": "int"}],
        },
        {
            "type": "constructor",
            "params": [
                {"name": "x", "type": "int"},
                {"name": "y", "type": "int"},
            ],
        },
    ],
    "asm": "$x $y OP_ADD $Simple.equalImpl.x OP_NUMEQUAL OP_VERIFY OP_1",
}


NESTED_ARTIFACT = {
    "version": 9,
    "contract": "ConstructorArgs",
    "structs": [
        {
            "name": "ST1",
            "params": [
                {"name": "x", "type": "bool"},
                {"name": "y", "type": "bytes"},
                {"name": "i", "type": "int"},
            ],
        },
        {
            "name": "ST2",
            "params": [
                {"name": "x", "type": "bool"},
                {"name": "y", "type": "bytes"},
                {"name": "st3", "type": "ST3"},
            ],
        },
        {
            "name": "ST3",
            "params": [
                {"name": "x", "type": "bool"},
                {"name": "y", "type": "int[3]"},
            ],
        },
    ],
    "alias": [{"name": "ST1A", "type": "ST1"}],
    "abi": [
        {
            "type": "function",
            "name": "unlock",
            "index": 0,
            "params": [{"name": "z", "type": "int"}],
        },
        {
            "type": "constructor",
            "params": [
                {"name": "a", "type": "int"},
                {"name": "st", "type": "ST2"},
                {"name": "arr", "type": "ST1A[2]"},
                {"name": "m", "type": "int[1][1][2]"},
                {"name": "big", "type": "int"},
            ],
        },
    ],
    "asm": (
        "$a OP_DROP $st.x $st.y $st.st3.x $st.st3.y[0] $st.st3.y[1] $st.st3.y[2] OP_2DROP "
        "$arr[0].x $arr[0].y $arr[0].i $arr[1].x $arr[1].y $arr[1].i "
        "$m[0][0][0] $m[0][0][1] $big OP_1"
    ),
}


STATEFUL_ARTIFACT = {
    "version": 9,
    "contract": "Counter",
    "structs": [
        {
            "name": "ST",
            "params": [
                {"name": "x", "type": "int"},
                {"name": "c", "type": "bool"},
                {"name": "aa", "type": "bytes"},
            ],
        },
    ],
    "library": [
        {
            "name": "L",
            "params": [
                {"name": "x", "type": "int"},
                {"name": "st", "type": "ST"},
            ],
            "properties": [
                {"name": "x", "type": "int"},
                {"name": "st", "type": "ST"},
            ],
        },
    ],
    "abi": [
        {
            "type": "function",
            "name": "increment",
            "index": 0,
            "params": [{"name": "n", "type": "int"}],
        },
        {
            "type": "function",
            "name": "reset",
            "index": 1,
            "params": [],
        },
        {
            "type": "constructor",
            "params": [{"name": "owner", "type": "PubKeyHash"}],
        },
    ],
    "stateProps": [
        {"name": "counter", "type": "int"},
        {"name": "l", "type": "L"},
    ],
    "asm": "$owner OP_DROP OP_1",
}


def _st2_leaves(root):
    return [f"{root}.x", f"{root}.y", f"{root}.st3.x"] + [f"{root}.st3.y[{k}]" for k in range(3)]


DEEP_LEAVES = (
    _st2_leaves("o.items[0]") + _st2_leaves("o.items[1]") + ["o.flag"]
    + [leaf for i in range(2) for j in range(2) for leaf in _st2_leaves(f"grid[{i}][{j}]")]
    + ["big"]
)

DEEP_ARTIFACT = {
    "version": 9,
    "contract": "Deep",
    "structs": [
        {
            "name": "ST2",
            "params": [
                {"name": "x", "type": "bool"},
                {"name": "y", "type": "bytes"},
                {"name": "st3", "type": "ST3"},
            ],
        },
        {
            "name": "ST3",
            "params": [
                {"name": "x", "type": "bool"},
                {"name": "y", "type": "int[3]"},
            ],
        },
        {
            "name": "Outer",
            "params": [
                {"name": "items", "type": "ST2[2]"},
                {"name": "flag", "type": "bool"},
            ],
        },
    ],
    "abi": [
        {
            "type": "function",
            "name": "unlock",
            "index": 0,
            "params": [],
        },
        {
            "type": "constructor",
            "params": [
                {"name": "o", "type": "Outer"},
                {"name": "grid", "type": "ST2[2][2]"},
                {"name": "big", "type": "int"},
            ],
        },
    ],
    "asm": " ".join(f"${leaf}" for leaf in DEEP_LEAVES) + " OP_1",
}


@pytest.fixture
def nested_args():
    """Constructor arguments for the nested artifact."""
    return [
        -7,
        {
            "x": True,
            "y": "68656c6c6f",
            "st3": {"x": False, "y": [0, -1, 1000]},
        },
        [
            {"x": False, "y": "", "i": 17},
            {"x": True, "y": "ff" * 80, "i": -129},
        ],
        [[[16, 2 ** 64]]],
        -(2 ** 200) + 12345,
    ]


@pytest.fixture
def deep_args():
    """Constructor arguments for the deep artifact; every int needs more than 64 bits."""
    counter = iter(range(100))

    def st2(flag):
        return {
            "x": flag,
            "y": bytes([next(counter)]).hex() * 3,
            "st3": {"x": not flag, "y": [2 ** 70 + next(counter) for _ in range(3)]},
        }

    return [
        {"items": [st2(True), st2(False)], "flag": True},
        [[st2(False), st2(True)], [st2(True), st2(False)]],
        -(2 ** 70) - next(counter),
    ]


@pytest.fixture
def pubkey_hash():
    return PUBKEY_HASH


@pytest.fixture
def p2pkh_code_hex():
    return P2PKH_CODE_HEX


@pytest.fixture
def p2pkh_code_asm():
    return P2PKH_CODE_ASM


@pytest.fixture
def p2pkh_artifact():
    return copy.deepcopy(P2PKH_ARTIFACT)


@pytest.fixture
def nested_artifact():
    return copy.deepcopy(NESTED_ARTIFACT)


@pytest.fixture
def stateful_artifact():
    return copy.deepcopy(STATEFUL_ARTIFACT)


@pytest.fixture
def p2pkh_definition():
    return ContractDefinition.from_dict(P2PKH_ARTIFACT)


@pytest.fixture
def simple_definition():
    return ContractDefinition.from_dict(SIMPLE_ARTIFACT)


@pytest.fixture
def nested_definition():
    return ContractDefinition.from_dict(NESTED_ARTIFACT)


@pytest.fixture
def stateful_definition():
    return ContractDefinition.from_dict(STATEFUL_ARTIFACT)


@pytest.fixture
def deep_definition():
    return ContractDefinition.from_dict(DEEP_ARTIFACT)


@pytest.fixture
def artifact_dir(tmp_path):
    """Directory holding every test artifact as <contract>.json."""
    for artifact in (P2PKH_ARTIFACT, SIMPLE_ARTIFACT, NESTED_ARTIFACT, STATEFUL_ARTIFACT, DEEP_ARTIFACT):
        path = tmp_path / f"{artifact['contract']}.json"
        path.write_text(json.dumps(artifact))
    return tmp_path
