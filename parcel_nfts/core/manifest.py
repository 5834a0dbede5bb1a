"""
Collection Manifest

The manifest is the declarative description of an NFT collection supplied as
`manifest.json` alongside the collection's files. Validation applies a JSON
schema and then cross-checks every referenced file against the supplied file
set. All problems are collected and raised together as one `ValidationErrors`,
so a manifest author can fix everything in a single round trip.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Union

import jsonschema
from pydantic import BaseModel, ConfigDict, Field

from parcel_nfts.exceptions import ValidationErrors

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


class AllowDuplicates(str, Enum):
    """Which file roles may reference the same file more than once."""
    NO = "no"
    PUBLIC = "public"
    PRIVATE = "private"
    YES = "yes"


class MintingOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # The amount of items a member of the premint list can mint.
    max_premint_count: int = Field(default=0, alias="maxPremintCount")
    # The amount of ROSE paid for one token by premint-listed accounts.
    premint_price: int = Field(default=0, alias="premintPrice")
    # The maximum number of tokens mintable by an individual account.
    max_mint_count: int = Field(default=0, alias="maxMintCount")
    # The amount of ROSE paid for one token by the general public.
    mint_price: int = Field(default=0, alias="mintPrice")


class NftDescriptor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    public_image: str = Field(alias="publicImage")
    private_data: str = Field(alias="privateData")
    attributes: List[Dict[str, Any]] = Field(default_factory=list)
    # Forces the item to be airdropped to this holder.
    owner: Optional[str] = None


class Manifest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    symbol: str
    # When set, the collection is a blind box and its final base URI is set later.
    initial_base_uri: Optional[str] = Field(default=None, alias="initialBaseUri")
    # Without minting options there is no public mint; everything is preminted to the creator.
    minting: Optional[MintingOptions] = None
    creator_royalty: float = Field(alias="creatorRoyalty")
    allow_duplicates: AllowDuplicates = Field(default=AllowDuplicates.NO, alias="allowDuplicates")
    nfts: List[NftDescriptor]

    @property
    def collection_size(self) -> int:
        return len(self.nfts)

    @property
    def has_public_mint(self) -> bool:
        if self.minting is None:
            return False
        return self.minting.max_premint_count > 0 or self.minting.max_mint_count > 0

    @property
    def is_blind_box(self) -> bool:
        return bool(self.initial_base_uri)


NFT_DESCRIPTOR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": ["string", "null"]},
        "description": {"type": ["string", "null"]},
        "publicImage": {"type": "string"},
        "privateData": {"type": "string"},
        "attributes": {"type": "array", "items": {"type": "object"}, "uniqueItems": True},
        "owner": {"type": "string", "pattern": "^0x[0-9a-fA-F]{40}$"},
    },
    "required": ["publicImage", "privateData"],
    "additionalProperties": False,
}

MINTING_OPTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "maxPremintCount": {"type": "integer", "minimum": 0},
        "premintPrice": {"type": "integer", "minimum": 0},
        "maxMintCount": {"type": "integer", "minimum": 0},
        "mintPrice": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": False,
}

MANIFEST_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "symbol": {"type": "string"},
        "initialBaseUri": {"type": "string", "format": "uri"},
        "minting": MINTING_OPTIONS_SCHEMA,
        "creatorRoyalty": {"type": "number", "minimum": 0, "maximum": 20},
        "allowDuplicates": {"type": "string", "enum": [a.value for a in AllowDuplicates]},
        "nfts": {"type": "array", "items": NFT_DESCRIPTOR_SCHEMA, "minItems": 1},
    },
    "required": ["title", "symbol", "nfts", "creatorRoyalty"],
    "additionalProperties": False,
}

DOCUMENTATION = """interface Manifest {
  /** The title of the NFT collection. */
  title: string;

  /** The ticker symbol of the NFT collection. */
  symbol: string;

  /** The initial base URI of the collection. The default is none. */
  initialBaseUri?: string;

  /** Configuration of mint-time parameters. Omit to premint everything to the creator. */
  minting?: MintingOptions;

  /** The percent (0-20) of secondary sales paid to the creator. */
  creatorRoyalty: number;

  /** Which roles may reuse a file: "no" (default), "public", "private" or "yes". */
  allowDuplicates?: string;

  /** Configuration of each item in the collection. */
  nfts: NftDescriptor[];
}

interface MintingOptions {
  maxPremintCount: number;
  premintPrice: number;
  maxMintCount: number;
  mintPrice: number;
}

interface NftDescriptor {
  title?: string;
  description?: string;
  publicImage: string;
  privateData: string;
  attributes: object[];
  owner?: string;
}"""

_validator = jsonschema.Draft7Validator(MANIFEST_SCHEMA, format_checker=jsonschema.FormatChecker())


def _schema_error_message(error: jsonschema.ValidationError) -> str:
    path = ".".join(str(p) for p in error.absolute_path)
    target = f"manifest.{path}" if path else "manifest"
    return f"{target} {error.message}"


def schema_errors(data: Any) -> List[str]:
    return [_schema_error_message(e) for e in _validator.iter_errors(data)]


def _allow_duplicates(data: Any) -> AllowDuplicates:
    try:
        return AllowDuplicates(data.get("allowDuplicates", AllowDuplicates.NO.value))
    except (AttributeError, ValueError):
        return AllowDuplicates.NO


def file_errors(data: Any, file_names: Set[str]) -> List[str]:
    """Cross-check the files referenced by the manifest against the supplied names."""
    nfts = data.get("nfts") if isinstance(data, dict) else None
    if not isinstance(nfts, list):
        return []

    allow = _allow_duplicates(data)
    check_public = allow in (AllowDuplicates.NO, AllowDuplicates.PRIVATE)
    check_private = allow in (AllowDuplicates.NO, AllowDuplicates.PUBLIC)

    missing: List[str] = []
    dupes: List[str] = []
    seen_public: Set[str] = set()
    seen_private: Set[str] = set()

    def check(file_name: Any, seen: Set[str], check_dupes: bool) -> None:
        if not isinstance(file_name, str):
            return
        if file_name not in file_names and file_name not in missing:
            missing.append(file_name)
        if check_dupes and file_name in seen and file_name not in dupes:
            dupes.append(file_name)
        seen.add(file_name)

    for descriptor in nfts:
        if not isinstance(descriptor, dict):
            continue
        check(descriptor.get("publicImage"), seen_public, check_public)
        check(descriptor.get("privateData"), seen_private, check_private)

    return [
        *(f"Missing: {f}." for f in missing),
        *(f"Duplicated: {f}." for f in dupes),
    ]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def validate_manifest(manifest_json: Union[str, bytes], file_names: Iterable[str]) -> Manifest:
    """
    Parse and validate a manifest against the supplied file names.

    Returns:
        The parsed manifest.

    Raises:
        ValidationErrors: With every schema and file problem found.
    """
    try:
        data = json.loads(manifest_json, parse_constant=_reject_constant)
    except ValueError as e:
        raise ValidationErrors([f"Failed to load {MANIFEST_FILENAME}: {e}"])

    errors = schema_errors(data) + file_errors(data, set(file_names))
    if errors:
        logger.info(f"Manifest validation found {len(errors)} problem(s)")
        raise ValidationErrors(errors)

    return Manifest.model_validate(data)
