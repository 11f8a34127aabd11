"""
End-to-end tests: artifacts on disk, rendered scripts inside transaction
outputs, and recovery of arguments and state from serialized outputs.
"""

import pytest

from contract import ContractDefinition
from contract.exceptions import TemplateMismatchError
from crypto import PrivateKey, build_p2pkh_unlocking_script, DEFAULT_SIGHASH, double_sha256, sign_input_digest
from scripts.outputs import TxOutput, parse_output, serialize_output


pytestmark = pytest.mark.integration


class TestNestedContract:
    """Test a contract with structs, aliases and nested arrays."""

    def test_hex_round_trip_through_output(self, artifact_dir, nested_args):
        definition = ContractDefinition.load(artifact_dir / "ConstructorArgs.json")
        instance = definition.new(*nested_args)

        raw = serialize_output(instance.locking_script(), 546)
        output, offset = parse_output(raw)
        assert offset == len(raw)
        assert output.satoshis == 546

        recovered = definition.from_hex(output.script.to_hex())
        assert recovered == instance
        assert recovered.ctor_arg_map()["st"].to_json() == {
            "x": True,
            "y": "68656c6c6f",
            "st3": {"x": False, "y": [0, -1, 1000]},
        }
        assert [item.to_python()["i"] for item in recovered.ctor_arg_map()["arr"]] == [17, -129]

    def test_other_contract_rejected(self, artifact_dir, nested_args, pubkey_hash):
        nested = ContractDefinition.load(artifact_dir / "ConstructorArgs.json")
        p2pkh = ContractDefinition.load(artifact_dir / "P2PKH.json")
        script = p2pkh.new(pubkey_hash).locking_script()

        assert not nested.probe(script)
        with pytest.raises(TemplateMismatchError):
            nested.from_script(script)

    def test_deep_contract_through_output(self, artifact_dir, deep_args):
        definition = ContractDefinition.load(artifact_dir / "Deep.json")
        instance = definition.new(*deep_args)
        instance.set_data_part("OP_7")

        output, _ = parse_output(serialize_output(instance.locking_script(), 1000))
        recovered = definition.from_script(output.script)
        assert recovered == instance
        assert recovered.ctor_args() == instance.ctor_args()
        assert recovered.data_part().to_asm() == "OP_7"


class TestStatefulContract:
    """Test a state transition carried between two outputs."""

    def test_state_transition(self, artifact_dir, pubkey_hash):
        definition = ContractDefinition.load(artifact_dir / "Counter.json")
        instance = definition.new(pubkey_hash)
        instance.set_state({"counter": 0, "l": [1, {"x": 0, "c": False, "aa": ""}]})
        previous = TxOutput(1000, instance.locking_script())

        # Spend: read the state back, bump the counter, write the next output
        spent, _ = parse_output(previous.serialize())
        current = definition.from_script(spent.script)
        state = current.state().to_python()
        state["counter"] += 1
        state["l"]["st"]["aa"] = "beef"
        unlocking = current.unlocking_script("increment", 1)
        next_output = TxOutput(spent.satoshis, current.new_state_script(state))

        following = definition.from_script(next_output.script)
        assert following.code_part() == current.code_part()
        assert following.state().to_json()["counter"] == 1
        assert following.state().to_json()["l"]["st"]["aa"] == "beef"
        assert unlocking.to_asm() == "OP_1 0"


class TestP2PKHSpend:
    """Test locking a P2PKH contract to a key and unlocking it."""

    def test_lock_and_unlock(self, p2pkh_definition):
        key = PrivateKey((7).to_bytes(32, "big"))
        public_key = key.public_key()
        instance = p2pkh_definition.new(public_key.hash160().hex())

        recovered = p2pkh_definition.from_script(instance.locking_script())
        assert recovered.ctor_args()[0].value == public_key.hash160()

        signature = sign_input_digest(key, double_sha256(b"sighash preimage"))
        unlocking = instance.unlocking_script("unlock", signature.hex(), public_key.hex)
        assert unlocking == build_p2pkh_unlocking_script(signature, DEFAULT_SIGHASH, public_key)
        spec, args = p2pkh_definition.decode_call(unlocking)
        assert spec.name == "unlock"
        assert args[1].value == public_key.bytes
