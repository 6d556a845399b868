"""
Import resolution for contract sources.

Binds every import in a contract source to a concrete account address.
Handles the import forms:
- import Foo from "./Foo.cdc"
- import "Foo"
- import Foo, Bar from 0x01   (already bound, left as-is)
- import Crypto               (built-in, left as-is)

Names are looked up first among the contracts deployed in the same run,
then in the network's alias table.
"""

import logging
import re
from dataclasses import dataclass, replace
from pathlib import PurePosixPath
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import UnresolvedImportError
from .types import ContractUnit

logger = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"

# import Foo from "./Foo.cdc" / import Foo, Bar from 0x01 / import Foo from Bar
_IMPORT_FROM = re.compile(
    rf'^(?P<indent>[ \t]*)import\s+(?P<names>{_IDENT}(?:\s*,\s*{_IDENT})*)\s+from\s+'
    rf'(?P<location>"[^"\n]*"|0x[0-9a-fA-F]+|{_IDENT})',
    re.MULTILINE,
)

# import "Foo"
_IMPORT_STRING = re.compile(r'^(?P<indent>[ \t]*)import\s+"(?P<location>[^"\n]+)"', re.MULTILINE)


@dataclass(frozen=True)
class ImportStatement:
    """A single import found in a contract source."""

    names: Tuple[str, ...]
    location: str  # Path, address or identifier, without quotes
    kind: str  # "path", "address" or "identifier"


def _name_from_location(location: str) -> str:
    # "./contracts/Foo.cdc" -> "Foo", "Foo" -> "Foo"
    return PurePosixPath(location).stem


def parse_imports(source: str) -> List[ImportStatement]:
    """
    Find all import statements in a contract source, in source order.

    Args:
        source: Contract source text

    Returns:
        List of ImportStatement
    """
    found: List[Tuple[int, ImportStatement]] = []

    for match in _IMPORT_FROM.finditer(source):
        names = tuple(n.strip() for n in match.group("names").split(","))
        location = match.group("location")
        if location.startswith('"'):
            statement = ImportStatement(names, location.strip('"'), "path")
        elif location.lower().startswith("0x"):
            statement = ImportStatement(names, location, "address")
        else:
            statement = ImportStatement(names, location, "identifier")
        found.append((match.start(), statement))

    for match in _IMPORT_STRING.finditer(source):
        location = match.group("location")
        found.append(
            (match.start(), ImportStatement((_name_from_location(location),), location, "path"))
        )

    found.sort(key=lambda item: item[0])
    return [statement for _, statement in found]


def imported_names(source: str) -> List[str]:
    """Names imported by location (the ones that need an address), deduplicated."""
    names: List[str] = []
    for statement in parse_imports(source):
        if statement.kind != "path":
            continue
        for name in statement.names:
            if name not in names:
                names.append(name)
    return names


def resolve_source(
    contract_name: str, source: str, addresses: Mapping[str, str]
) -> Tuple[str, List[str]]:
    """
    Rewrite every location import in a source to import from an address.

    Pure function: the source is not modified in place.

    Args:
        contract_name: Name of the contract declaring the imports (for errors)
        source: Contract source text
        addresses: Import name -> normalized address

    Returns:
        Tuple of (resolved_source, imported_names)

    Raises:
        UnresolvedImportError: If an imported name has no address
    """
    names = imported_names(source)
    for name in names:
        if name not in addresses:
            raise UnresolvedImportError(contract_name, name)

    def _bind_from(match: "re.Match[str]") -> str:
        if not match.group("location").startswith('"'):
            return match.group(0)
        imported = [n.strip() for n in match.group("names").split(",")]
        # One statement per name: names may live on different accounts
        return "\n".join(
            f"{match.group('indent')}import {name} from {addresses[name]}" for name in imported
        )

    def _bind_string(match: "re.Match[str]") -> str:
        name = _name_from_location(match.group("location"))
        return f"{match.group('indent')}import {name} from {addresses[name]}"

    resolved = _IMPORT_FROM.sub(_bind_from, source)
    resolved = _IMPORT_STRING.sub(_bind_string, resolved)
    return resolved, names


def build_address_table(
    units: Sequence[ContractUnit], aliases: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Build the name -> address table for one network.

    Contracts deployed in the run take precedence over aliases.
    """
    table: Dict[str, str] = dict(aliases or {})
    for unit in units:
        table[unit.name] = unit.account_address
    return table


def resolve_contracts(
    units: Sequence[ContractUnit], aliases: Optional[Mapping[str, str]] = None
) -> List[ContractUnit]:
    """
    Resolve imports of every contract in a deployment set.

    Args:
        units: Contracts targeted at one network
        aliases: Contract name -> address for contracts not deployed in this run

    Returns:
        New ContractUnit objects with code and dependencies set, in input order

    Raises:
        UnresolvedImportError: On the first import that cannot be resolved
    """
    table = build_address_table(units, aliases)
    deployed = {unit.name for unit in units}

    resolved_units = []
    for unit in units:
        code, names = resolve_source(unit.name, unit.source, table)
        dependencies = tuple(name for name in names if name in deployed)
        logger.debug(
            "resolved %s: depends on %s, aliased %s",
            unit.name,
            list(dependencies),
            [name for name in names if name not in deployed],
        )
        resolved_units.append(replace(unit, code=code, dependencies=dependencies))

    return resolved_units
