import json

import pytest
from eth_abi import decode
from web3 import Web3

from erc20_deploy.deploy.template import ERC20_ABI, TokenTemplate, load_template
from erc20_deploy.utils.exceptions import ConfigurationError, InvalidAmount

from ..conftest import TEST_BYTECODE


class TestLoadTemplate:
    """Artifact loading"""

    def test_flat_layout(self, artifact_file):
        template = load_template(artifact_file)
        assert template.bytecode == TEST_BYTECODE
        assert template.constructor_types() == ["string", "string", "uint8", "uint256"]

    def test_forge_layout_without_prefix(self, tmp_path):
        path = tmp_path / "Token.json"
        path.write_text(json.dumps({"abi": ERC20_ABI, "bytecode": {"object": "6080604052"}}))
        template = load_template(path)
        assert template.bytecode == "0x6080604052"

    def test_missing_abi_uses_default(self, tmp_path):
        path = tmp_path / "Token.json"
        path.write_text(json.dumps({"bytecode": "0x60"}))
        assert load_template(path).abi == ERC20_ABI

    def test_constructor_arity_checked_on_load(self, tmp_path):
        abi = [{"type": "constructor", "inputs": [{"name": "x", "type": "uint256"}]}]
        path = tmp_path / "Token.json"
        path.write_text(json.dumps({"abi": abi, "bytecode": "0x60"}))
        with pytest.raises(ConfigurationError):
            load_template(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_template(tmp_path / "nope.json")
        assert exc_info.value.details["artifact"].endswith("nope.json")

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        json.dumps({"abi": []}),
        json.dumps({"bytecode": "0x"}),
        json.dumps({"bytecode": {"object": ""}}),
    ])
    def test_unusable_artifacts(self, tmp_path, content):
        path = tmp_path / "Token.json"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            load_template(path)


class TestTokenTemplate:
    """Constructor encoding and selectors"""

    def test_encode_constructor_appends_args(self, template):
        init_code = template.encode_constructor("TestCoin", "TST", 18, 1000 * 10**18)
        assert init_code.startswith(TEST_BYTECODE)

        args = Web3.to_bytes(hexstr=init_code[len(TEST_BYTECODE):])
        assert decode(["string", "string", "uint8", "uint256"], args) == (
            "TestCoin", "TST", 18, 1000 * 10**18
        )

    def test_supply_beyond_uint256(self, template):
        with pytest.raises(InvalidAmount):
            template.encode_constructor("T", "T", 18, 2**256)

    def test_constructor_arity_mismatch(self):
        abi = [{"type": "constructor", "inputs": [{"name": "x", "type": "uint256"}]}]
        template = TokenTemplate(bytecode="0x60", abi=abi)
        with pytest.raises(ConfigurationError):
            template.encode_constructor("T", "T", 18, 1)

    def test_view_outputs_fall_back_to_erc20(self):
        template = TokenTemplate(bytecode="0x60", abi=[])
        assert template.output_types("decimals") == ["uint8"]
        assert template.output_types("name") == ["string"]

    @pytest.mark.parametrize("function_name,selector", [
        ("name", "0x06fdde03"),
        ("symbol", "0x95d89b41"),
        ("decimals", "0x313ce567"),
    ])
    def test_selectors(self, function_name, selector):
        assert TokenTemplate.selector(function_name) == selector
