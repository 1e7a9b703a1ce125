"""
Deployment configuration with JSON schema validation

All invocation parameters end up in one immutable DeployConfig that is
built once at startup and passed explicitly into the pipeline.

Design Notes:
- Sources, lowest to highest precedence: config file (JSON or YAML),
  ERC20_DEPLOY_<FIELD> environment variables, explicit CLI values
- The merged mapping is validated with jsonschema before any network activity
- Every problem is reported at once in a single ConfigurationError
- The private key is excluded from repr() and from to_dict()
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import jsonschema
import yaml

from .exceptions import ConfigurationError, ErrorCodes

LOG = logging.getLogger(__name__)

ENV_PREFIX = "ERC20_DEPLOY_"

REQUIRED_FIELDS = ("rpc_url", "name", "symbol", "supply")

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "rpc_url": {"type": "string", "minLength": 1},
        "private_key": {"type": ["string", "null"]},
        "name": {"type": "string", "minLength": 1},
        "symbol": {"type": "string", "minLength": 1},
        "decimals": {"type": "integer", "minimum": 0, "maximum": 255},
        "supply": {"type": ["string", "integer"]},
        "gas_limit": {"type": "integer", "minimum": 1},
        "gas_price_gwei": {
            "anyOf": [
                {"type": "number", "minimum": 0},
                {"type": "string", "pattern": r"^\s*[0-9]*\.?[0-9]+\s*$"},
                {"type": "null"},
            ]
        },
        "artifact": {"type": "string", "minLength": 1},
        "confirmation_timeout": {"type": "number", "exclusiveMinimum": 0},
        "poll_interval": {"type": "number", "exclusiveMinimum": 0},
        "max_poll_errors": {"type": "integer", "minimum": 1},
        "request_timeout": {"type": "number", "exclusiveMinimum": 0},
        "output_file": {"type": ["string", "null"]},
    },
}


@dataclass(frozen=True)
class DeployConfig:
    """Validated, immutable invocation parameters"""
    rpc_url: str
    name: str
    symbol: str
    supply: str
    private_key: Optional[str] = field(default=None, repr=False)
    decimals: int = 18
    gas_limit: int = 3_000_000
    gas_price_gwei: Optional[Decimal] = None
    artifact: str = "contracts_data/ERC20Token.json"
    confirmation_timeout: float = 300.0
    poll_interval: float = 1.0
    max_poll_errors: int = 5
    request_timeout: float = 30.0
    output_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view without the secret"""
        result = {}
        for f in fields(self):
            if f.name == "private_key":
                continue
            value = getattr(self, f.name)
            result[f.name] = str(value) if isinstance(value, Decimal) else value
        return result


CONFIG_FIELDS = tuple(f.name for f in fields(DeployConfig))


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a JSON or YAML configuration file.

    Raises:
        ConfigurationError: File missing, unparseable, or not a mapping
    """
    config_file = Path(path)
    if not config_file.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_file}",
            code=ErrorCodes.CONFIG_FILE_NOT_FOUND,
            config_file=str(config_file)
        )

    try:
        with open(config_file, 'r') as f:
            if config_file.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Invalid configuration file {config_file}: {e}",
            code=ErrorCodes.CONFIG_VALIDATION_FAILED,
            config_file=str(config_file),
            cause=e
        )

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {config_file} must contain a mapping",
            code=ErrorCodes.CONFIG_VALIDATION_FAILED,
            config_file=str(config_file)
        )
    return data


def _get_env_override(key: str, environ: Mapping[str, str]) -> Any:
    """Environment override for one field, parsed as JSON when possible"""
    env_value = environ.get(f"{ENV_PREFIX}{key.upper()}")
    if env_value is None:
        return None
    # Secrets and names stay verbatim
    if key in ("private_key", "rpc_url", "name", "symbol", "supply", "artifact", "output_file"):
        return env_value
    try:
        return json.loads(env_value)
    except json.JSONDecodeError:
        return env_value


def _validate(merged: Dict[str, Any]) -> List[str]:
    validator = jsonschema.Draft7Validator(CONFIG_SCHEMA)
    errors = []
    for error in sorted(validator.iter_errors(merged), key=lambda e: list(e.path)):
        if error.path and error.path[0] == "private_key":
            # Schema messages quote the offending value
            errors.append("'private_key' must be a hex string")
        elif error.path:
            path = " -> ".join(str(p) for p in error.path)
            errors.append(f"'{path}' {error.message}")
        else:
            errors.append(error.message)

    for key in REQUIRED_FIELDS:
        value = merged.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"'{key}' is required")
    return errors


def build_config(
    cli_values: Optional[Mapping[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> DeployConfig:
    """
    Merge configuration sources into a DeployConfig.

    Args:
        cli_values: Explicit values; None entries are treated as unset
        config_file: Optional JSON/YAML file
        environ: Environment mapping (default: os.environ)

    Raises:
        ConfigurationError: Any schema violation or missing required value
    """
    environ = os.environ if environ is None else environ

    merged: Dict[str, Any] = {}
    if config_file:
        merged.update(load_config_file(config_file))

    for key in CONFIG_FIELDS:
        override = _get_env_override(key, environ)
        if override is not None:
            merged[key] = override

    for key, value in (cli_values or {}).items():
        if value is not None:
            merged[key] = value

    # YAML reads an unquoted 0x... key as an int
    private_key = merged.get("private_key")
    if isinstance(private_key, int) and not isinstance(private_key, bool) and private_key >= 0:
        merged["private_key"] = f"{private_key:064x}"

    # Decimal is not a JSON type; validate its textual form
    if isinstance(merged.get("gas_price_gwei"), Decimal):
        merged["gas_price_gwei"] = str(merged["gas_price_gwei"])

    errors = _validate(merged)
    if errors:
        raise ConfigurationError(
            "Invalid configuration:\n" + "\n".join(f"  - {error}" for error in errors),
            code=ErrorCodes.CONFIG_VALIDATION_FAILED,
            problems=errors
        )

    values = dict(merged)
    values["supply"] = str(values["supply"])
    gas_price = values.get("gas_price_gwei")
    if isinstance(gas_price, float):
        values["gas_price_gwei"] = Decimal(repr(gas_price))
    elif gas_price is not None:
        values["gas_price_gwei"] = Decimal(str(gas_price).strip())
    for key in ("decimals", "gas_limit", "max_poll_errors"):
        if key in values:
            values[key] = int(values[key])
    for key in ("confirmation_timeout", "poll_interval", "request_timeout"):
        if key in values:
            values[key] = float(values[key])

    config = DeployConfig(**values)
    LOG.debug(f"Configuration: {config.to_dict()}")
    return config
