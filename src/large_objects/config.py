import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from appdirs import user_config_dir
from dotenv import load_dotenv

from large_objects.exceptions import ConfigError
from large_objects.storage.base import ObjectStore

CONFIG_ENV_VAR = "LARGE_OBJECTS_CONFIG"
CONFIG_FILE_NAME = "large_objects.conf"


@dataclass
class Section:
    name: str
    data: Dict[str, str] = field(default_factory=dict)

    def add(self, key: str, value: str) -> None:
        self.data[key] = value

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self.data.get(key)
        if value is None:
            return default
        return os.path.expandvars(value)

    def require(self, key: str) -> str:
        value = self.get(key)
        if not value:
            raise ConfigError(f"Service [{self.name}] is missing '{key}'")
        return value

    def get_int(self, key: str) -> int | None:
        value = self.get(key)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError as e:
            raise ConfigError(f"Service [{self.name}] '{key}' is not an integer: {value}") from e

    def type(self) -> str:
        return self.require("type").lower()


@dataclass
class Parsed:
    sections: dict[str, Section]

    @staticmethod
    def parse(content: str) -> "Parsed":
        return parse_services_config(content)

    def service(self, name: str) -> Section:
        section = self.sections.get(name)
        if section is None:
            known = ", ".join(sorted(self.sections)) or "none"
            raise ConfigError(f"Unknown service '{name}' (configured: {known})")
        return section


def parse_services_config(content: str) -> Parsed:
    """
    Parses a services configuration file.

    Each section in the file starts with a line like [service_name]
    followed by key=value pairs.
    """
    sections: List[Section] = []
    current_section: Section | None = None

    for line in content.splitlines():
        line = line.strip()
        # Skip empty lines and comments (assumed to start with '#' or ';')
        if not line or line.startswith(("#", ";")):
            continue
        if line.startswith("[") and line.endswith("]"):
            current_section = Section(name=line[1:-1].strip())
            sections.append(current_section)
        elif "=" in line and current_section is not None:
            # Split only on the first '='
            key, value = line.split("=", 1)
            current_section.add(key.strip(), value.strip())

    return Parsed(sections={s.name: s for s in sections})


def find_config_file(explicit: Path | None = None) -> Path | None:
    if explicit is not None:
        return explicit
    if os.environ.get(CONFIG_ENV_VAR):
        return Path(os.environ[CONFIG_ENV_VAR])
    if (conf := Path.cwd() / CONFIG_FILE_NAME).exists():
        return conf
    if (conf := Path(user_config_dir("large_objects")) / CONFIG_FILE_NAME).exists():
        return conf
    return None


def load_config(path: Path | None = None) -> Parsed:
    """Load the services file, expanding $VARS from the environment and .env."""
    load_dotenv(Path(".env"))
    conf = find_config_file(path)
    if conf is None:
        raise ConfigError(
            f"No services config found, pass --config or set ${CONFIG_ENV_VAR}"
        )
    if not conf.exists():
        raise ConfigError(f"Config file not found: {conf}")
    return parse_services_config(conf.read_text(encoding="utf-8"))


def create_store(section: Section) -> ObjectStore:
    """Build the object store a service section describes."""
    kind = section.type()
    if kind == "swift":
        from large_objects.storage.swift import (
            SwiftConfig,
            SwiftDestination,
            SwiftStore,
        )

        return SwiftStore(
            SwiftDestination(
                storage_url=section.require("storage_url"),
                auth_token=section.require("auth_token"),
            ),
            SwiftConfig(
                max_pool_connections=section.get_int("max_pool_connections"),
                timeout_connection=section.get_int("timeout_connection"),
                timeout_read=section.get_int("timeout_read"),
            ),
        )
    if kind == "s3":
        from large_objects.storage.s3 import (
            S3Config,
            S3Credentials,
            S3Provider,
            S3Store,
        )

        try:
            provider = S3Provider.from_str(section.get("provider", "s3") or "s3")
        except ValueError as e:
            raise ConfigError(str(e)) from e
        return S3Store(
            S3Credentials(
                provider=provider,
                access_key_id=section.require("access_key_id"),
                secret_access_key=section.require("secret_access_key"),
                session_token=section.get("session_token"),
                region_name=section.get("region"),
                endpoint_url=section.get("endpoint"),
            ),
            S3Config(
                max_pool_connections=section.get_int("max_pool_connections"),
                timeout_connection=section.get_int("timeout_connection"),
                timeout_read=section.get_int("timeout_read"),
            ),
        )
    if kind == "memory":
        from large_objects.storage.memory import MemoryStore

        return MemoryStore()
    raise ConfigError(f"Service [{section.name}] has unknown type '{kind}'")


def open_store(service: str, config_path: Path | None = None) -> ObjectStore:
    return create_store(load_config(config_path).service(service))
