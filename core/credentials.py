"""
Credential lookup helpers.

Adapters receive an unordered collection of Credential objects and pull out
the names they need. Lookup is strict: a missing name or a name supplied more
than once is a configuration error, never something to guess around.
"""

from typing import Dict, Iterable, List, Mapping

from core.errors import CredentialError
from core.schemas import Credential


def require_credential(credentials: Iterable[Credential], name: str, exchange: str = "") -> str:
    """
    Return the value of the single credential called ``name``.

    Raises:
        CredentialError: If no credential or more than one credential has that name
    """
    matches = [c.value for c in credentials if c.name == name]
    where = f" for {exchange}" if exchange else ""

    if not matches:
        raise CredentialError(f"Missing required credential '{name}'{where}")
    if len(matches) > 1:
        raise CredentialError(f"Credential '{name}' supplied {len(matches)} times{where}")
    return matches[0]


def require_credentials(credentials: Iterable[Credential], names: Iterable[str], exchange: str = "") -> Dict[str, str]:
    """Resolve several required names at once (see require_credential)."""
    credentials = list(credentials)
    return {name: require_credential(credentials, name, exchange) for name in names}


def credentials_from_mapping(values: Mapping[str, str]) -> List[Credential]:
    """Build Credential objects from a name -> value mapping, skipping blank values."""
    return [Credential(name=name, value=value) for name, value in values.items() if value]
