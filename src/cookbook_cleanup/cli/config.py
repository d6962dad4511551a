import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CREDENTIALS_PATH = Path("~/.chef/credentials")
DEFAULT_PROFILE = "default"


class ConfigError(Exception):
    """Chef credentials are missing or unusable."""


@dataclass(frozen=True)
class ChefCredentials:
    """One profile of the Chef credentials file.

    Example ~/.chef/credentials:
      [default]
      client_name = "barney"
      client_key = "~/.chef/barney.pem"
      chef_server_url = "https://chef.example.com/organizations/bedrock"
    """

    chef_server_url: str
    client_name: str
    client_key: bytes  # PEM content


def _read_client_key(value: str, *, credentials_dir: Path) -> bytes:
    """client_key is either inline PEM or a path relative to the credentials file."""
    if value.lstrip().startswith("-----BEGIN"):
        return value.encode("utf-8")

    key_path = Path(value).expanduser()
    if not key_path.is_absolute():
        key_path = credentials_dir / key_path
    if not key_path.exists():
        msg = f"Client key not found: {key_path}"
        raise ConfigError(msg)
    return key_path.read_bytes()


def load_credentials(path: Path, profile: str) -> ChefCredentials:
    """Load a profile from a Chef credentials file.

    Args:
        path: Credentials file; "~" is expanded
        profile: Profile (TOML table) name

    Raises:
        ConfigError: If the file, profile or a required key is missing
    """
    cfg_path = path.expanduser()
    if not cfg_path.exists():
        msg = f"Chef credentials file not found: {cfg_path}"
        raise ConfigError(msg)

    try:
        data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid credentials file {cfg_path}: {e}"
        raise ConfigError(msg) from e

    section = data.get(profile)
    if not isinstance(section, dict):
        msg = f"Profile '{profile}' not found in {cfg_path}"
        raise ConfigError(msg)

    missing = [
        key for key in ("chef_server_url", "client_name", "client_key") if not section.get(key)
    ]
    if missing:
        msg = f"Profile '{profile}' in {cfg_path} is missing: {', '.join(missing)}"
        raise ConfigError(msg)

    return ChefCredentials(
        chef_server_url=str(section["chef_server_url"]),
        client_name=str(section["client_name"]),
        client_key=_read_client_key(str(section["client_key"]), credentials_dir=cfg_path.parent),
    )
