"""Load and validate credentials.yaml / scenarios.yaml into Python objects.

Resolution order for catalog files:
  1. Path passed explicitly by caller
  2. ./credentials.yaml in current working directory
  3. Built-in defaults (seedkit/config/defaults/credentials.yaml)

Same pattern for scenarios.yaml.
"""

from pathlib import Path
from typing import Optional

import yaml

from seedkit.config.schema import CredentialsConfig, ScenariosConfig, ScenarioYAML
from seedkit.types import CredentialDefinition

# Paths to bundled defaults
_DEFAULTS_DIR = Path(__file__).parent / "defaults"


def _find_file(name: str, explicit: Optional[Path]) -> Path:
    """Locate catalog file: explicit > cwd > defaults."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise FileNotFoundError(f"Catalog file not found: {p}")
        return p

    cwd_path = Path.cwd() / name
    if cwd_path.exists():
        return cwd_path

    defaults_path = _DEFAULTS_DIR / name
    if defaults_path.exists():
        return defaults_path

    raise FileNotFoundError(
        f"No {name} found. Create one in your project directory "
        f"or pass path=... explicitly."
    )


def load_credentials_yaml(path: Optional[Path] = None) -> dict[str, CredentialDefinition]:
    """Load credentials.yaml → catalog key → CredentialDefinition.

    Every definition's alias list always contains its own catalog key.
    """
    resolved = _find_file("credentials.yaml", path)
    raw = yaml.safe_load(resolved.read_text())
    catalog = CredentialsConfig.model_validate(raw or {"credentials": []})

    definitions: dict[str, CredentialDefinition] = {}
    for entry in catalog.credentials:
        aliases = list(entry.aliases)
        if entry.key not in aliases:
            aliases.insert(0, entry.key)
        definitions[entry.key] = CredentialDefinition(
            key=entry.key,
            credential_name=entry.credential_name,
            default_name=entry.name,
            aliases=tuple(aliases),
            env_keys=entry.env_keys,
            default_values=entry.default_values,
        )
    return definitions


def load_scenarios_yaml(path: Optional[Path] = None) -> dict[str, ScenarioYAML]:
    """Load scenarios.yaml → scenario name → ScenarioYAML."""
    resolved = _find_file("scenarios.yaml", path)
    raw = yaml.safe_load(resolved.read_text())
    catalog = ScenariosConfig.model_validate(raw or {"scenarios": []})
    return {scenario.name: scenario for scenario in catalog.scenarios}
