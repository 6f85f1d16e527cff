"""
Configuration management for graphseed.

Loads and validates configuration from graphseed.toml files using Pydantic.
Every setting has a default, so configuration files are optional.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from graphseed.synthesizer import AttributeSynthesizer

CONFIG_FILENAME = "graphseed.toml"


class DatabaseConfig(BaseSettings):
    """Database connection configuration (env: GRAPHSEED_DATABASE_URL, ...)."""

    model_config = SettingsConfigDict(env_prefix="GRAPHSEED_DATABASE_")

    url: str = Field(
        default="postgresql://localhost/graphseed_test",
        description="PostgreSQL connection URL",
    )
    schema_name: str = Field(default="public", description="Schema holding the model tables")


class GenerationConfig(BaseSettings):
    """Attribute synthesis configuration (env: GRAPHSEED_GENERATION_STRATEGY, ...)."""

    model_config = SettingsConfigDict(env_prefix="GRAPHSEED_GENERATION_")

    strategy: str = Field(default="faker", description="Default generation strategy")
    faker_locale: str = Field(default="en_US", description="Faker locale")
    faker_seed: Optional[int] = Field(
        default=None, description="Seed for Faker (None for random output)"
    )
    url_scheme: str = Field(default="http", description="Scheme of synthesized URLs")
    sequence_start: int = Field(
        default=1, description="First value of the unique integer sequence"
    )


class Config(BaseSettings):
    """Main configuration for graphseed."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to graphseed.toml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

        return cls(
            database=DatabaseConfig(**data.get("database", {})),
            generation=GenerationConfig(**data.get("generation", {})),
        )

    @classmethod
    def find_config(cls, start_dir: Path | str | None = None) -> Config:
        """
        Find and load graphseed.toml by walking up the directory tree.

        Args:
            start_dir: Directory to start searching from (default: cwd)

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If no config file found
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return cls.from_toml(config_path)

            parent = current.parent
            if parent == current:
                break
            current = parent

        raise FileNotFoundError(f"No {CONFIG_FILENAME} found in {start_dir} or parent directories.")

    def to_toml(self, path: Path | str) -> None:
        """
        Write configuration to TOML file.

        Args:
            path: Path to write graphseed.toml
        """
        seed_line = (
            f"faker_seed = {self.generation.faker_seed}\n"
            if self.generation.faker_seed is not None
            else ""
        )
        toml_content = f"""# graphseed configuration

[database]
url = "{self.database.url}"
schema_name = "{self.database.schema_name}"

[generation]
strategy = "{self.generation.strategy}"
faker_locale = "{self.generation.faker_locale}"
{seed_line}url_scheme = "{self.generation.url_scheme}"
sequence_start = {self.generation.sequence_start}
"""
        Path(path).write_text(toml_content)

    def build_synthesizer(self) -> AttributeSynthesizer:
        """AttributeSynthesizer wired to the generation settings."""
        from faker import Faker

        from graphseed.generators.sequence import UniqueSequence
        from graphseed.synthesizer import AttributeSynthesizer

        fake = Faker(self.generation.faker_locale)
        if self.generation.faker_seed is not None:
            fake.seed_instance(self.generation.faker_seed)
        return AttributeSynthesizer(
            sequence=UniqueSequence(start=self.generation.sequence_start),
            fake=fake,
            url_scheme=self.generation.url_scheme,
        )


# Default configuration instance
DEFAULT_CONFIG = Config()
