import pytest

from erc20_deploy.deploy.credentials import (
    PROMPT_TEXT,
    PromptCredentialProvider,
    StaticCredentialProvider,
    normalize_secret,
    resolve_credential
)
from erc20_deploy.utils.exceptions import (
    ConfigurationError,
    ErrorCodes,
    InvalidCredential,
    MissingCredential
)

from ..conftest import TEST_ADDRESS, TEST_PRIVATE_KEY


class TestResolveCredential:
    """Key parsing and address derivation"""

    def test_derives_checksum_address(self):
        credential = resolve_credential(TEST_PRIVATE_KEY)
        assert credential.address == TEST_ADDRESS

    def test_accepts_0x_prefix_and_whitespace(self):
        credential = resolve_credential(f"  0x{TEST_PRIVATE_KEY}\n")
        assert credential.address == TEST_ADDRESS

    def test_secret_not_in_repr(self):
        credential = resolve_credential(TEST_PRIVATE_KEY)
        assert TEST_PRIVATE_KEY not in repr(credential)

    def test_direct_secret_wins_over_provider(self):
        provider = StaticCredentialProvider("not a key")
        credential = resolve_credential(TEST_PRIVATE_KEY, provider)
        assert credential.address == TEST_ADDRESS

    def test_falls_back_to_provider(self):
        credential = resolve_credential("", StaticCredentialProvider(TEST_PRIVATE_KEY))
        assert credential.address == TEST_ADDRESS

    def test_missing_without_provider(self):
        with pytest.raises(MissingCredential) as exc_info:
            resolve_credential(None)
        assert exc_info.value.code == ErrorCodes.CREDENTIAL_MISSING
        assert isinstance(exc_info.value, ConfigurationError)

    @pytest.mark.parametrize("provided", [None, "", "   "])
    def test_missing_from_provider(self, provided):
        with pytest.raises(MissingCredential):
            resolve_credential(None, StaticCredentialProvider(provided))

    @pytest.mark.parametrize("secret", [
        "zz" * 32,
        "abc",
        "ab" * 31,
        "ab" * 33,
        "00" * 32,
        "ff" * 32,
    ])
    def test_invalid_keys(self, secret):
        with pytest.raises(InvalidCredential) as exc_info:
            resolve_credential(secret)
        assert exc_info.value.code == ErrorCodes.CREDENTIAL_INVALID

    def test_invalid_key_not_echoed(self):
        secret = "ab" * 31
        with pytest.raises(InvalidCredential) as exc_info:
            resolve_credential(secret)
        assert secret not in str(exc_info.value)


class TestProviders:
    """Secret sources"""

    def test_prompt_reads_once(self):
        prompts = []

        def fake_prompt(text):
            prompts.append(text)
            return TEST_PRIVATE_KEY

        credential = resolve_credential(None, PromptCredentialProvider(prompt_func=fake_prompt))
        assert credential.address == TEST_ADDRESS
        assert prompts == [PROMPT_TEXT]

    def test_prompt_eof_is_missing(self):
        def closed_input(text):
            raise EOFError

        provider = PromptCredentialProvider(prompt_func=closed_input)
        assert provider.obtain_secret() is None
        with pytest.raises(MissingCredential):
            resolve_credential(None, provider)

    def test_prompt_not_used_when_key_given(self):
        def unexpected(text):
            raise AssertionError("prompt should not be shown")

        resolve_credential(TEST_PRIVATE_KEY, PromptCredentialProvider(prompt_func=unexpected))

    def test_normalize_secret(self):
        assert normalize_secret(" 0xABCD ") == "ABCD"
        assert normalize_secret("abcd") == "abcd"
