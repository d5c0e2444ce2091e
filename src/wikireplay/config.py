"""Configuration management for wikireplay.

Supports TOML configuration format with auto-discovery.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from wikireplay.core.engine import ReplayOptions
from wikireplay.core.scaffold import DEFAULT_MAIN_PAGE
from wikireplay.render.renderers import RENDERERS

CONFIG_FILENAME = "wikireplay.toml"


@dataclass
class RepositoryConfig:
    """Destination repository configuration."""

    path: Path | None = None
    force: bool = False
    resume: bool = False


@dataclass
class RenderConfig:
    """Content rendering configuration."""

    dialect: str = "markdown"
    keep_source: bool = False
    main_page: str = DEFAULT_MAIN_PAGE
    strict: bool = False


@dataclass
class ReplayConfig:
    """Replay loop configuration."""

    limit: int | None = None
    render_ahead: int = 0


@dataclass
class Config:
    """Application configuration."""

    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    replay: ReplayConfig = field(default_factory=ReplayConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for wikireplay.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        return cls(
            repository=cls._parse_repository(data.get("repository"), config_dir),
            render=cls._parse_render(data.get("render")),
            replay=cls._parse_replay(data.get("replay")),
            config_path=path,
        )

    @classmethod
    def _parse_repository(cls, data: object, config_dir: Path) -> RepositoryConfig:
        """Parse repository configuration section.

        Args:
            data: Raw repository section data
            config_dir: Directory containing config file (for relative paths)
        """
        if data is None:
            return RepositoryConfig()

        if not isinstance(data, dict):
            raise ValueError("repository section must be a dictionary")

        raw_path = data.get("path")
        if raw_path is not None and not isinstance(raw_path, str):
            raise ValueError("repository.path must be a string")

        force = data.get("force", False)
        if not isinstance(force, bool):
            raise ValueError("repository.force must be a boolean")

        resume = data.get("resume", False)
        if not isinstance(resume, bool):
            raise ValueError("repository.resume must be a boolean")

        return RepositoryConfig(
            path=config_dir / raw_path if raw_path is not None else None,
            force=force,
            resume=resume,
        )

    @classmethod
    def _parse_render(cls, data: object) -> RenderConfig:
        """Parse render configuration section."""
        if data is None:
            return RenderConfig()

        if not isinstance(data, dict):
            raise ValueError("render section must be a dictionary")

        dialect = data.get("dialect", "markdown")
        if not isinstance(dialect, str):
            raise ValueError("render.dialect must be a string")
        if dialect not in RENDERERS:
            raise ValueError(f"render.dialect must be one of: {', '.join(sorted(RENDERERS))}")

        keep_source = data.get("keep_source", False)
        if not isinstance(keep_source, bool):
            raise ValueError("render.keep_source must be a boolean")

        main_page = data.get("main_page", DEFAULT_MAIN_PAGE)
        if not isinstance(main_page, str) or not main_page.strip():
            raise ValueError("render.main_page must be a non-empty string")

        strict = data.get("strict", False)
        if not isinstance(strict, bool):
            raise ValueError("render.strict must be a boolean")

        return RenderConfig(
            dialect=dialect,
            keep_source=keep_source,
            main_page=main_page,
            strict=strict,
        )

    @classmethod
    def _parse_replay(cls, data: object) -> ReplayConfig:
        """Parse replay configuration section."""
        if data is None:
            return ReplayConfig()

        if not isinstance(data, dict):
            raise ValueError("replay section must be a dictionary")

        limit = data.get("limit")
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
            raise ValueError("replay.limit must be a non-negative integer")

        render_ahead = data.get("render_ahead", 0)
        if isinstance(render_ahead, bool) or not isinstance(render_ahead, int) or render_ahead < 0:
            raise ValueError("replay.render_ahead must be a non-negative integer")

        return ReplayConfig(limit=limit, render_ahead=render_ahead)

    def with_overrides(
        self,
        *,
        repository_path: Path | None = None,
        force: bool | None = None,
        resume: bool | None = None,
        dialect: str | None = None,
        keep_source: bool | None = None,
        main_page: str | None = None,
        strict: bool | None = None,
        limit: int | None = None,
        render_ahead: int | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.
        """
        repository = replace(
            self.repository,
            path=repository_path if repository_path is not None else self.repository.path,
            force=force if force is not None else self.repository.force,
            resume=resume if resume is not None else self.repository.resume,
        )
        render = replace(
            self.render,
            dialect=dialect if dialect is not None else self.render.dialect,
            keep_source=keep_source if keep_source is not None else self.render.keep_source,
            main_page=main_page if main_page is not None else self.render.main_page,
            strict=strict if strict is not None else self.render.strict,
        )
        replay = replace(
            self.replay,
            limit=limit if limit is not None else self.replay.limit,
            render_ahead=render_ahead if render_ahead is not None else self.replay.render_ahead,
        )
        return replace(self, repository=repository, render=render, replay=replay)

    def replay_options(self) -> ReplayOptions:
        """Build engine options from this configuration.

        Raises:
            ValueError: If the combination of options is invalid
        """
        return ReplayOptions(
            force_overwrite=self.repository.force,
            limit=self.replay.limit,
            resume=self.repository.resume,
            keep_source=self.render.keep_source,
            main_page=self.render.main_page,
            strict_render=self.render.strict,
            render_ahead=self.replay.render_ahead,
        )
