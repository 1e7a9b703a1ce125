import pytest

from erc20_deploy.deploy.authorizer import authorize
from erc20_deploy.deploy.chain_context import ChainContext
from erc20_deploy.deploy.gas import GasPolicy
from erc20_deploy.utils.exceptions import BroadcastError, ConfigurationError

from ..conftest import TEST_ADDRESS, TEST_PRIVATE_KEY


class TestAuthorization:
    """Single-use transaction authorization"""

    def test_fields(self, credential):
        auth = authorize(credential, ChainContext(1, 3), GasPolicy(3_000_000, 10))
        assert auth.sender == TEST_ADDRESS
        assert auth.nonce == 3
        assert auth.consume() == {
            "from": TEST_ADDRESS,
            "nonce": 3,
            "chainId": 1,
            "value": 0,
            "gas": 3_000_000,
            "gasPrice": 10,
        }
        assert auth.consumed

    def test_second_consume_fails(self, credential):
        auth = authorize(credential, ChainContext(1, 0), GasPolicy(21_000, 1))
        auth.consume()
        with pytest.raises(BroadcastError):
            auth.consume()

    @pytest.mark.parametrize("gas", [GasPolicy(0, 1), GasPolicy(21_000, 0)])
    def test_rejects_non_positive_gas(self, credential, gas):
        with pytest.raises(ConfigurationError):
            authorize(credential, ChainContext(1, 0), gas)

    def test_repr_hides_key(self, credential):
        auth = authorize(credential, ChainContext(1, 0), GasPolicy(21_000, 1))
        assert TEST_PRIVATE_KEY not in repr(auth)
        assert "nonce=0" in repr(auth)
