"""
Property Tests for Name Resolution and Library Linking
"""

from hypothesis import given, strategies as st
from web3 import Web3

from blockchain.artifacts import ContractArtifact, split_fully_qualified_name
from blockchain.contract_factory import link_libraries

identifiers = st.from_regex(r'[A-Za-z_][A-Za-z0-9_]{0,30}', fullmatch=True)
source_paths = st.lists(identifiers, min_size=1, max_size=4).map(lambda parts: '/'.join(parts) + '.sol')
addresses = st.binary(min_size=20, max_size=20).map(lambda raw: Web3.to_checksum_address('0x' + raw.hex()))


class TestNameFuzzing:

    @given(source_name=source_paths, contract_name=identifiers)
    def test_fully_qualified_roundtrip(self, source_name, contract_name):
        assert split_fully_qualified_name(f"{source_name}:{contract_name}") == (source_name, contract_name)

    @given(contract_name=identifiers)
    def test_bare_name(self, contract_name):
        assert split_fully_qualified_name(contract_name) == (None, contract_name)


class TestLinkingFuzzing:

    @given(
        prefix=st.binary(max_size=64),
        suffix=st.binary(max_size=64),
        address=addresses
    )
    def test_linked_bytecode(self, prefix, suffix, address):
        placeholder = '__$' + 'f' * 34 + '$__'
        artifact = ContractArtifact(
            "Vault",
            "contracts/Vault.sol",
            [],
            '0x' + prefix.hex() + placeholder + suffix.hex(),
            link_references={
                "contracts/Math.sol": {"Math": [{"start": len(prefix), "length": 20}]}
            }
        )

        linked = link_libraries(artifact, {"Math": address})

        # Same length, no placeholder left, address at the link offset
        assert len(linked) == len(artifact.bytecode)
        assert '_' not in linked
        start = 2 + len(prefix) * 2
        assert linked[start:start + 40] == address[2:].lower()
        assert linked[2:start] == prefix.hex()
        assert linked[start + 40:] == suffix.hex()
