"""
ABI Loader - Load contract ABIs and turn them into a method table.

Accepts compiled artifacts from Truffle, Hardhat or Foundry (a JSON object
with an ``abi`` field) or a bare ABI array. Methods are looked up by name
or by full signature; dispatch is a table lookup, never reflection.
"""

from __future__ import annotations

import json
import logging
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence, Union

import jsonschema
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_hash.auto import keccak
from jsonschema import FormatChecker

from ..errors import InvalidAbiError, MethodNotFoundError

logger = logging.getLogger(__name__)

READ_ONLY = ("pure", "view")
MUTABILITIES = ("pure", "view", "nonpayable", "payable")

_PARAM_SCHEMA = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "name": {"type": "string"},
        "type": {"type": "string", "minLength": 1},
        "components": {"type": "array"},
    },
}

ABI_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "type": {
                "enum": ["function", "constructor", "event", "error", "fallback", "receive"],
            },
            "name": {"type": "string"},
            "inputs": {"type": "array", "items": _PARAM_SCHEMA},
            "outputs": {"type": "array", "items": _PARAM_SCHEMA},
            "stateMutability": {"enum": list(MUTABILITIES)},
            "constant": {"type": "boolean"},
            "payable": {"type": "boolean"},
        },
    },
}


def keccak256(data: bytes) -> bytes:
    """Keccak-256 (NOT NIST SHA3-256)."""
    return keccak(data)


def _canonical_type(param: dict[str, Any]) -> str:
    """Canonical ABI type, expanding tuples to ``(t1,t2)[...]``."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


@dataclass(frozen=True)
class AbiMethod:
    """
    One callable contract function.

    Attributes:
        name: Function name
        input_types: Canonical ABI types of the arguments, in order
        output_types: Canonical ABI types of the return values, in order
        mutability: "pure", "view", "nonpayable" or "payable"
    """
    name: str
    input_types: tuple[str, ...]
    output_types: tuple[str, ...]
    mutability: str

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return keccak256(self.signature.encode("utf-8"))[:4]

    @property
    def read_only(self) -> bool:
        return self.mutability in READ_ONLY

    @property
    def payable(self) -> bool:
        return self.mutability == "payable"

    def encode_call(self, args: Sequence[Any]) -> str:
        """
        ABI-encode a call to this method.

        Returns:
            0x-prefixed hex calldata

        Raises:
            ValueError: Wrong argument count or an unencodable value
        """
        args = list(args)
        if len(args) != len(self.input_types):
            raise ValueError(
                f"{self.signature} takes {len(self.input_types)} argument(s), "
                f"got {len(args)}"
            )
        try:
            encoded_args = encode(list(self.input_types), args) if args else b""
        except (EncodingError, TypeError, OverflowError) as exc:
            raise ValueError(f"Cannot encode arguments for {self.signature}: {exc}") from exc
        return "0x" + self.selector.hex() + encoded_args.hex()

    def decode_result(self, data: str) -> Any:
        """
        ABI-decode return data.

        Returns:
            None for no outputs, the value for one output, a tuple otherwise
        """
        if not self.output_types:
            return None
        raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
        try:
            decoded = decode(list(self.output_types), raw)
        except DecodingError as exc:
            raise ValueError(f"Cannot decode result of {self.signature}: {exc}") from exc
        if len(decoded) == 1:
            return decoded[0]
        return tuple(decoded)


def _mutability(entry: dict[str, Any]) -> str:
    if "stateMutability" in entry:
        return entry["stateMutability"]
    # Pre-0.4.16 compilers only emit constant/payable flags
    if entry.get("constant"):
        return "view"
    if entry.get("payable"):
        return "payable"
    return "nonpayable"


class ContractAbi:
    """Ordered method table built from an ABI entry list."""

    def __init__(self, methods: Iterable[AbiMethod]) -> None:
        self._by_signature: "OrderedDict[str, AbiMethod]" = OrderedDict()
        self._by_name: dict[str, list[AbiMethod]] = {}
        for method in methods:
            if method.signature in self._by_signature:
                raise InvalidAbiError(f"Duplicate function in ABI: {method.signature}")
            self._by_signature[method.signature] = method
            self._by_name.setdefault(method.name, []).append(method)
        if not self._by_signature:
            raise InvalidAbiError("ABI contains no functions")

    def __iter__(self):
        return iter(self._by_signature.values())

    def __len__(self) -> int:
        return len(self._by_signature)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name or name in self._by_signature

    @property
    def names(self) -> list[str]:
        return list(self._by_name)

    def method(self, name: str) -> AbiMethod:
        """
        Look up a method by plain name or full signature.

        Raises:
            MethodNotFoundError: Unknown name, or a name shared by overloads
        """
        if name in self._by_signature:
            return self._by_signature[name]
        candidates = self._by_name.get(name)
        if not candidates:
            raise MethodNotFoundError(name)
        if len(candidates) > 1:
            options = ", ".join(m.signature for m in candidates)
            raise MethodNotFoundError(
                name, f"Method {name!r} is overloaded; use one of: {options}"
            )
        return candidates[0]


def validate_abi(entries: Any) -> None:
    """
    Check an ABI entry list against the ABI JSON schema.

    Raises:
        InvalidAbiError: With every violation listed
    """
    validator_cls = jsonschema.validators.validator_for(ABI_SCHEMA)
    validator = validator_cls(ABI_SCHEMA, format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(entries), key=lambda e: [str(p) for p in e.path])
    if errors:
        formatted = [
            f"{'/'.join(str(p) for p in err.path) or '<root>'}: {err.message}"
            for err in errors
        ]
        raise InvalidAbiError("ABI failed validation: " + "; ".join(formatted))


def parse_abi(entries: Any) -> ContractAbi:
    """
    Build a method table from an ABI entry list.

    Non-function entries (events, errors, constructor) are skipped.

    Raises:
        InvalidAbiError: Schema violation, nameless function, or no functions
    """
    validate_abi(entries)

    methods = []
    for entry in entries:
        if entry.get("type", "function") != "function":
            continue
        name = entry.get("name")
        if not name:
            raise InvalidAbiError("Function entry without a name")
        methods.append(
            AbiMethod(
                name=name,
                input_types=tuple(_canonical_type(p) for p in entry.get("inputs", [])),
                output_types=tuple(_canonical_type(p) for p in entry.get("outputs", [])),
                mutability=_mutability(entry),
            )
        )
    return ContractAbi(methods)


def load_abi_file(path: Union[str, Path]) -> ContractAbi:
    """
    Load a contract ABI from a compiled artifact.

    Args:
        path: JSON file with an ``abi`` array, or a bare ABI array

    Returns:
        ContractAbi

    Raises:
        InvalidAbiError: Missing/unreadable file, bad JSON, or bad ABI
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            artifact = json.load(f)
    except FileNotFoundError:
        raise InvalidAbiError(f"ABI file not found: {path}") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidAbiError(f"Cannot read ABI file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidAbiError(f"ABI file {path} is not valid JSON: {exc}") from exc

    if isinstance(artifact, dict):
        if "abi" not in artifact:
            raise InvalidAbiError(f"ABI file {path} has no 'abi' field")
        entries = artifact["abi"]
    else:
        entries = artifact

    abi = parse_abi(entries)
    logger.debug("Loaded %d function(s) from %s", len(abi), path)
    return abi


def as_contract_abi(abi: Union[ContractAbi, list, None]) -> ContractAbi:
    """Accept a ready table or a raw entry list."""
    if isinstance(abi, ContractAbi):
        return abi
    if not abi:
        raise InvalidAbiError("ABI is empty")
    return parse_abi(abi)
