"""
Catalog and record document loader

Reads record type declarations from a YAML (or JSON) document so catalogs can
be kept next to the tests that use them:

    records:
      - name: AttributionNode
        model: recordmatch.telemetry:AttributionNode   # optional
        fields:
          - uid                                        # bare name = scalar
          - {name: tag, kind: scalar}
      - name: ShellData
        fields:
          - {name: atom, kind: repeated_nested, type: Atom}
          - {name: elapsed_timestamp_nanos, kind: repeated}

Records may be listed in any order; the catalog defines them in dependency
order. Record documents (expected/actual values for the CLI) use the same
loader and become plain mappings.

Ticket: 0091_record_matchers
"""

import importlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .catalog import Catalog, DefinitionError, RecordDeclaration
from .config import MatchConfig
from .fields import FieldKind, FieldSpec

logger = logging.getLogger(__name__)


class CatalogFormatError(DefinitionError):
    """Raised when a catalog document is malformed."""


# ---------------------------------------------------------------------------
# Document reading
# ---------------------------------------------------------------------------


def load_document(path: str | Path) -> Any:
    """Read a YAML or JSON document; the extension picks the parser."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


# ---------------------------------------------------------------------------
# Declaration parsing
# ---------------------------------------------------------------------------


def _import_model(record_name: str, target: str) -> type:
    """Resolve 'package.module:ClassName' to a class."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise CatalogFormatError(
            f"Record '{record_name}': model must look like 'package.module:ClassName', got '{target}'"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise CatalogFormatError(f"Record '{record_name}': cannot import '{module_name}': {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError:
        raise CatalogFormatError(
            f"Record '{record_name}': module '{module_name}' has no attribute '{attr}'"
        ) from None


def parse_field(record_name: str, raw: Any) -> FieldSpec:
    """Parse one entry of a record's fields list."""
    if isinstance(raw, str):
        return FieldSpec(raw, FieldKind.SCALAR)
    if not isinstance(raw, dict) or "name" not in raw:
        raise CatalogFormatError(
            f"Record '{record_name}': each field must be a name or a mapping with 'name', got {raw!r}"
        )

    name = raw["name"]
    kind_value = raw.get("kind", FieldKind.SCALAR.value)
    try:
        kind = FieldKind(kind_value)
    except ValueError:
        raise CatalogFormatError(
            f"Record '{record_name}' field '{name}': unknown kind '{kind_value}'. "
            f"Valid kinds: {[k.value for k in FieldKind]}"
        ) from None

    child = raw.get("type")
    if kind.is_nested and not child:
        raise CatalogFormatError(f"Record '{record_name}' field '{name}': {kind.value} field needs 'type'")
    if not kind.is_nested and child:
        raise CatalogFormatError(
            f"Record '{record_name}' field '{name}': {kind.value} field cannot have 'type'"
        )
    return FieldSpec(name, kind, child)


def _parse_record(name: str, body: Any) -> RecordDeclaration:
    if not isinstance(body, dict):
        raise CatalogFormatError(f"Record '{name}': expected a mapping, got {body!r}")
    raw_fields = body.get("fields") or []
    if not isinstance(raw_fields, list):
        raise CatalogFormatError(f"Record '{name}': 'fields' must be a list")
    fields = tuple(parse_field(name, raw) for raw in raw_fields)
    model = _import_model(name, body["model"]) if body.get("model") else None
    return RecordDeclaration(name, fields, model)


def parse_declarations(document: Any) -> list[RecordDeclaration]:
    """
    Parse a catalog document into record declarations.

    Accepts 'records' as a list of mappings with 'name', or as a mapping
    from record name to its body.
    """
    if not isinstance(document, dict) or "records" not in document:
        raise CatalogFormatError("Catalog document must be a mapping with a 'records' key")

    records = document["records"] or []
    declarations = []
    if isinstance(records, dict):
        for name, body in records.items():
            declarations.append(_parse_record(name, body))
    elif isinstance(records, list):
        for entry in records:
            if not isinstance(entry, dict) or "name" not in entry:
                raise CatalogFormatError(f"Each record entry needs a 'name', got {entry!r}")
            declarations.append(_parse_record(entry["name"], entry))
    else:
        raise CatalogFormatError("'records' must be a list or a mapping")
    return declarations


def catalog_from_document(
    document: Any,
    config: MatchConfig | None = None,
    freeze: bool = True,
) -> Catalog:
    catalog = Catalog(config)
    catalog.define_all(parse_declarations(document))
    return catalog.freeze() if freeze else catalog


def load_catalog(
    path: str | Path,
    config: MatchConfig | None = None,
    freeze: bool = True,
) -> Catalog:
    """Load a catalog file and define every record type it declares."""
    catalog = catalog_from_document(load_document(path), config, freeze)
    logger.info("Loaded %d record type(s) from %s", len(catalog), path)
    return catalog
