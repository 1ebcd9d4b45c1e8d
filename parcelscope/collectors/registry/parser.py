"""
Response parsing for data.go.kr style registries

Bodies arrive as XML (default) or JSON. Both decode to the same shape:

    response/header/resultCode, resultMsg
    response/body/items/item  (one dict or a list of dicts)

Some services wrap it in 'result' instead of 'response', and some omit
the header entirely.
"""

import json
from typing import Dict, Any, List, Mapping, Sequence, Tuple, Type, TypeVar
from xml.parsers.expat import ExpatError

import xmltodict
from pydantic import BaseModel, ValidationError

from ...errors import UpstreamFormatError, UpstreamStatusError


SUCCESS_CODE = "00"

M = TypeVar("M", bound=BaseModel)

# model field -> candidate upstream keys, first non-empty wins
FieldMap = Mapping[str, Sequence[str]]


def decode_body(text: str) -> Dict[str, Any]:
    """Decode an XML or JSON body into a dict"""
    stripped = (text or "").lstrip()
    if not stripped:
        raise UpstreamFormatError("Empty response body")

    try:
        if stripped.startswith("{"):
            data = json.loads(stripped)
        else:
            data = xmltodict.parse(stripped)
    except (ValueError, ExpatError) as e:
        raise UpstreamFormatError(f"Malformed response body: {e}") from e

    if not isinstance(data, dict):
        raise UpstreamFormatError(f"Unexpected response root: {type(data).__name__}")
    return data


def _envelope(data: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("response", "result"):
        envelope = data.get(key)
        if isinstance(envelope, dict):
            return envelope
    raise UpstreamFormatError(f"No response envelope in body (keys: {sorted(data)})")


def check_status(data: Dict[str, Any]) -> None:
    """
    Raise UpstreamStatusError if the embedded result code is not success

    Bodies without a header carry no status and are accepted as is.
    """
    header = _envelope(data).get("header")
    if header is None:
        return
    if not isinstance(header, dict):
        raise UpstreamFormatError(f"Unexpected result header: {header!r}")

    code = str(header.get("resultCode", "")).strip()
    if code != SUCCESS_CODE:
        message = header.get("resultMsg") or "Unknown result"
        raise UpstreamStatusError(f"Registry result {code}: {message}", code=code)


def extract_items(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return body items as a list; a single item becomes a one-element list"""
    body = _envelope(data).get("body")
    if not isinstance(body, dict):
        return []

    items = body.get("items")
    if isinstance(items, dict):
        items = items.get("item")
    if items is None:
        return []
    if isinstance(items, dict):
        return [items]
    if isinstance(items, list):
        return [item for item in items if isinstance(item, dict)]
    raise UpstreamFormatError(f"Unexpected items type: {type(items).__name__}")


def normalize_item(
    model: Type[M],
    field_map: FieldMap,
    raw: Mapping[str, Any],
    label: str,
) -> Tuple[M, List[str]]:
    """
    Build a model from one upstream item

    Missing or invalid fields are left at their defaults and reported as
    warnings, producing a partial record instead of failing the item.
    """
    warnings: List[str] = []
    values: Dict[str, Any] = {}

    for field, keys in field_map.items():
        value = next((raw[k] for k in keys if raw.get(k) not in (None, "")), None)
        if value is None:
            warnings.append(f"{label}.{keys[0]} missing")
            continue
        values[field] = value.strip() if isinstance(value, str) else value

    try:
        return model.model_validate(values), warnings
    except ValidationError as e:
        by_alias = {info.alias or name: name for name, info in model.model_fields.items()}
        for error in e.errors():
            loc = str(error["loc"][0]) if error["loc"] else ""
            field = by_alias.get(loc, loc)
            if values.pop(field, None) is not None:
                keys = field_map.get(field, (field,))
                warnings.append(f"{label}.{keys[0]} invalid: {error['msg']}")
        return model.model_validate(values), warnings


def normalize_items(
    model: Type[M],
    field_map: FieldMap,
    raw_items: Sequence[Mapping[str, Any]],
    domain: str,
) -> Tuple[List[M], List[str]]:
    items: List[M] = []
    warnings: List[str] = []
    for i, raw in enumerate(raw_items):
        item, item_warnings = normalize_item(model, field_map, raw, f"{domain}[{i}]")
        items.append(item)
        warnings.extend(item_warnings)
    return items, warnings
