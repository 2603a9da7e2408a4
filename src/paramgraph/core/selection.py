"""
Parsing of stored parameter selections.

Tasks persist their selection as a JSON object. Two shapes exist:
- Current: {"<parameter id>": "<option id>"}
- Legacy: {"<parameter slug>": "<option label or name>"}

Both resolve to a parameter id -> option id mapping against the graph.
"""

import json
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from .exceptions import SelectionError
from .graph import GraphStore
from .types import ParameterOption

logger = logging.getLogger(__name__)


def parse_stored_selection(raw: str | Mapping[str, Any], graph: GraphStore) -> Dict[str, str]:
    """
    Resolve a stored selection into {parameter_id: option_id}.

    Entries whose parameter or option cannot be found are logged and
    skipped; they never abort the parse.

    Raises:
        SelectionError: If `raw` is a string that is not a JSON object.
    """
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SelectionError(f"Stored selection is not valid JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise SelectionError("Stored selection must be a JSON object")

    selection: Dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            logger.debug(f"Skipping non-string selection value for {key}")
            continue

        parameter = graph.get_parameter(key)
        if parameter is not None:
            if graph.owns_option(parameter.id, value):
                selection[parameter.id] = value
            else:
                logger.info(f"Option not found for {key} -> {value}")
            continue

        # Legacy format: slug -> label/name
        parameter = graph.find_parameter(key)
        if parameter is None:
            logger.info(f"Parameter not found: {key}")
            continue

        option = match_option(graph.options_for(parameter.id), value)
        if option is None:
            logger.info(f"Option not found for {key} -> {value}")
            continue
        selection[parameter.id] = option.id

    return selection


def match_option(options: Iterable[ParameterOption], value: str) -> Optional[ParameterOption]:
    """
    Find an option by id, label or name; exact match first, then case-insensitive.
    """
    candidates = list(options)
    for option in candidates:
        if value in (option.id, option.label, option.name):
            return option

    lowered = value.lower()
    for option in candidates:
        if lowered in (option.label.lower(), option.name.lower()):
            return option
    return None


def resolve_selection_tokens(tokens: Iterable[str], graph: GraphStore) -> Dict[str, str]:
    """
    Resolve command-line `parameter=option` tokens.

    Parameters may be named by id or slug, options by id, label or name.

    Raises:
        SelectionError: On a malformed token or an unknown parameter/option.
    """
    selection: Dict[str, str] = {}
    for token in tokens:
        if "=" not in token:
            raise SelectionError(f"Expected parameter=option, got: {token}")
        key, value = (part.strip() for part in token.split("=", 1))

        parameter = graph.find_parameter(key)
        if parameter is None:
            raise SelectionError(f"Unknown parameter: {key}")

        option = match_option(graph.options_for(parameter.id), value)
        if option is None:
            raise SelectionError(f"Unknown option for {parameter.slug}: {value}")
        selection[parameter.id] = option.id

    return selection
