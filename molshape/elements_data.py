from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import json
import logging
from typing import Dict, Any, Union, Optional

from .errors import InvalidElementError

logger = logging.getLogger(__name__)

# Default path to elements.json shipped inside the package
ELEMENTS_JSON: Path = Path(__file__).parent / "data" / "elements.json"

# In-memory cache of raw element properties, keyed by uppercase symbol
ELEMENT_DATA: Dict[str, Dict[str, Any]] = {}

# Built Element descriptors, keyed by uppercase symbol
_ELEMENT_CACHE: Dict[str, "Element"] = {}


@dataclass(frozen=True)
class Element:
    """
    Immutable chemical identity of an atom.
    """
    symbol: str
    name: str
    atomic_number: int
    covalent_radius: float       # angstroms
    electronegativity: float     # Pauling scale, 0.0 when unknown
    valence_electrons: int = 0
    max_bonds: int = 0

    def __str__(self) -> str:
        return self.symbol


def load_elements(path: Union[Path, str, None] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load elements.json into the ELEMENT_DATA dictionary.
    If path is not provided, uses the default ELEMENTS_JSON.

    Returns
    -------
    Dict[str, Dict[str, Any]]
        A mapping from element symbol (uppercase) to its properties.

    Raises
    ------
    OSError, ValueError
        If the file cannot be read or is not valid JSON.
    """
    global ELEMENT_DATA
    if path is None:
        path = ELEMENTS_JSON

    path = Path(path)
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)

    out: Dict[str, Dict[str, Any]] = {}

    # Support different JSON formats
    if isinstance(raw, dict) and "elements" in raw:
        for el in raw["elements"]:
            if "symbol" in el:
                out[el["symbol"].upper()] = el
    elif isinstance(raw, dict):
        for k, v in raw.items():
            entry = dict(v) if isinstance(v, dict) else {}
            entry.setdefault("symbol", str(k))
            out[str(k).upper()] = entry
    else:
        raise ValueError(f"Unsupported element table format in {path}")

    ELEMENT_DATA = out
    _ELEMENT_CACHE.clear()
    logger.info(f"Loaded {len(ELEMENT_DATA)} elements from {path}")
    return ELEMENT_DATA


def _build_element(props: Dict[str, Any]) -> Element:
    symbol = str(props["symbol"])
    return Element(
        symbol=symbol[0].upper() + symbol[1:].lower(),
        name=str(props.get("name", symbol)),
        atomic_number=int(props.get("atomic_number", 0)),
        covalent_radius=float(props.get("covalent_radius", 0.7)),
        electronegativity=float(props.get("electronegativity_pauling", 0.0) or 0.0),
        valence_electrons=int(props.get("valence_electrons", 0)),
        max_bonds=int(props.get("max_bonds", 0)),
    )


def get_element(symbol: str) -> Element:
    """
    Return the Element descriptor for a symbol (case-insensitive).
    Automatically loads ELEMENT_DATA if it is empty.

    Parameters
    ----------
    symbol : str
        The chemical symbol of the element.

    Raises
    ------
    InvalidElementError
        If the symbol is not in the element table.
    """
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidElementError(str(symbol))
    key = symbol.strip().upper()
    if not ELEMENT_DATA:
        load_elements()

    element = _ELEMENT_CACHE.get(key)
    if element is not None:
        return element

    props = ELEMENT_DATA.get(key)
    if props is None:
        raise InvalidElementError(symbol)

    element = _build_element(props)
    _ELEMENT_CACHE[key] = element
    return element


def is_known_element(symbol: str) -> bool:
    try:
        get_element(symbol)
    except InvalidElementError:
        return False
    return True


def resolve_element(element: Union[Element, str, None]) -> Optional[Element]:
    """Accept either an Element or a symbol; None passes through."""
    if element is None or isinstance(element, Element):
        return element
    return get_element(element)
