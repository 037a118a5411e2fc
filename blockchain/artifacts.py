"""
Artifact Store
Resolves contract names to compiled ABI + bytecode from the build output
"""

import os
import json
import difflib
from typing import Dict, List, Optional
from loguru import logger

from .errors import ArtifactNotFound


class ContractArtifact:
    """Compiled contract: ABI, creation bytecode and library link offsets"""

    def __init__(
        self,
        contract_name: str,
        source_name: str,
        abi: List[Dict],
        bytecode: str,
        link_references: Optional[Dict] = None,
        path: Optional[str] = None
    ):
        self.contract_name = contract_name
        self.source_name = source_name
        self.abi = abi
        self.bytecode = bytecode
        self.link_references = link_references or {}
        self.path = path

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.source_name}:{self.contract_name}"

    @property
    def is_abstract(self) -> bool:
        """Interfaces and abstract contracts compile to empty bytecode"""
        return self.bytecode in ('', '0x')

    def __repr__(self):
        return f"ContractArtifact({self.fully_qualified_name!r})"


def split_fully_qualified_name(name: str):
    """
    Split 'contracts/Token.sol:Token' into (source_name, contract_name)

    Bare names return (None, name).
    """
    if ':' not in name:
        return None, name

    source_name, _, contract_name = name.rpartition(':')
    return source_name, contract_name


class ArtifactStore:
    """
    Reads Hardhat-style artifacts:

        <artifacts_dir>/<sourceName>/<ContractName>.json

    Foundry output (bytecode stored as {"object": ...}) is accepted too.
    """

    SKIP_DIRS = ('build-info',)

    def __init__(self, artifacts_dir: str = "artifacts"):
        """
        Initialize Artifact Store

        Args:
            artifacts_dir: Root of the compiled build output
        """
        self.artifacts_dir = artifacts_dir

    def resolve(self, name: str) -> ContractArtifact:
        """
        Resolve a contract name to its compiled artifact

        Args:
            name: Bare contract name or fully qualified name

        Returns:
            ContractArtifact

        Raises:
            ArtifactNotFound: No artifact, several candidates, or unreadable file
        """
        if not os.path.isdir(self.artifacts_dir):
            raise ArtifactNotFound(
                f"Artifacts directory not found: {self.artifacts_dir} "
                f"(compile the contracts first)",
                contract_name=name
            )

        source_name, contract_name = split_fully_qualified_name(name)

        if source_name is not None:
            path = os.path.join(self.artifacts_dir, source_name, f"{contract_name}.json")

            if not os.path.isfile(path):
                raise ArtifactNotFound(
                    f"Artifact for contract \"{name}\" not found",
                    contract_name=name
                )

            return self._load(path, name)

        candidates = self._find_artifact_files(contract_name)

        if not candidates:
            message = f"Artifact for contract \"{name}\" not found"
            suggestions = difflib.get_close_matches(
                name,
                [fqn.rpartition(':')[2] for fqn in self.list_contracts()],
                n=3
            )
            if suggestions:
                message += f". Did you mean: {', '.join(sorted(set(suggestions)))}?"
            raise ArtifactNotFound(message, contract_name=name)

        if len(candidates) > 1:
            names = [self._fully_qualified_name_for(path) for path in candidates]
            raise ArtifactNotFound(
                f"There are multiple artifacts for contract \"{name}\", "
                f"use a fully qualified name: {', '.join(sorted(names))}",
                contract_name=name
            )

        return self._load(candidates[0], name)

    def list_contracts(self) -> List[str]:
        """Get fully qualified names of every artifact in the build output"""
        names = []

        for path in self._iter_artifact_files():
            names.append(self._fully_qualified_name_for(path))

        return sorted(names)

    def _iter_artifact_files(self):
        for root, dirs, files in os.walk(self.artifacts_dir):
            dirs[:] = [d for d in dirs if d not in self.SKIP_DIRS]

            # Artifacts always sit inside a source-file directory
            if os.path.abspath(root) == os.path.abspath(self.artifacts_dir):
                continue

            for filename in files:
                if filename.endswith('.json') and not filename.endswith('.dbg.json'):
                    yield os.path.join(root, filename)

    def _find_artifact_files(self, contract_name: str) -> List[str]:
        target = f"{contract_name}.json"
        return [
            path for path in self._iter_artifact_files()
            if os.path.basename(path) == target
        ]

    def _fully_qualified_name_for(self, path: str) -> str:
        relative = os.path.relpath(path, self.artifacts_dir)
        source_name = os.path.dirname(relative).replace(os.sep, '/')
        contract_name = os.path.basename(relative)[:-len('.json')]
        return f"{source_name}:{contract_name}"

    def _load(self, path: str, requested_name: str) -> ContractArtifact:
        try:
            with open(path, 'r') as f:
                contract_json = json.load(f)
        except (OSError, ValueError) as e:
            raise ArtifactNotFound(
                f"Could not read artifact {path}: {e}",
                contract_name=requested_name
            ) from e

        if not isinstance(contract_json, dict) or 'abi' not in contract_json or 'bytecode' not in contract_json:
            raise ArtifactNotFound(
                f"Invalid artifact {path}: missing abi or bytecode",
                contract_name=requested_name
            )

        bytecode = contract_json['bytecode']
        link_references = contract_json.get('linkReferences')

        if isinstance(bytecode, dict):
            # Foundry layout
            link_references = bytecode.get('linkReferences', link_references)
            bytecode = bytecode.get('object', '')

        bytecode = bytecode or ''
        if not bytecode.startswith('0x'):
            bytecode = '0x' + bytecode

        fqn = self._fully_qualified_name_for(path)
        source_name = contract_json.get('sourceName') or fqn.rpartition(':')[0]
        contract_name = contract_json.get('contractName') or fqn.rpartition(':')[2]

        logger.debug(f"Loaded artifact {source_name}:{contract_name} from {path}")

        return ContractArtifact(
            contract_name=contract_name,
            source_name=source_name,
            abi=contract_json['abi'],
            bytecode=bytecode,
            link_references=link_references,
            path=path
        )
