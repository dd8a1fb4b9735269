"""
configplus-validate - validate configuration files from the command line.

Usage:
    configplus-validate appsettings.yaml appsettings.local.yaml \\
        --section Database=myapp.settings:DatabaseSettings \\
        --section Email=myapp.settings:EmailSettings \\
        --environment Production

Exit codes:
    0  every section is valid
    1  at least one section is invalid
    2  usage, import or file loading error
"""

from __future__ import annotations

import argparse
import importlib
import sys
from collections.abc import Sequence
from typing import Final

from pydantic import BaseModel

from configplus.core.config import get_settings
from configplus.core.exceptions import ConfigurationSourceError
from configplus.core.logging import configure_logging
from configplus.core.tracing import configure_tracing
from configplus.manager import ConfigManager
from configplus.models.options import ConfigurationOptions
from configplus.sources.loader import load_sources

EXIT_OK: Final[int] = 0
EXIT_INVALID: Final[int] = 1
EXIT_USAGE: Final[int] = 2


def parse_section_spec(spec: str) -> tuple[str, type[BaseModel]]:
    """Parse "Path=package.module:ClassName" into (path, model type).

    Raises:
        ValueError: Malformed spec, unknown module/class or not a BaseModel
    """
    section_path, sep, target = spec.partition("=")
    module_name, colon, class_name = target.partition(":")
    if not sep or not colon or not section_path or not module_name or not class_name:
        raise ValueError(f"Expected Path=package.module:ClassName, got '{spec}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module '{module_name}': {e}") from e

    model_type = getattr(module, class_name, None)
    if not (isinstance(model_type, type) and issubclass(model_type, BaseModel)):
        raise ValueError(f"'{target}' is not a pydantic BaseModel subclass")
    return section_path, model_type


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="configplus-validate",
        description="Bind and validate configuration sections",
    )
    parser.add_argument("files", nargs="+", help="JSON/YAML files, later files override earlier ones")
    parser.add_argument(
        "--section",
        action="append",
        default=[],
        metavar="PATH=MODULE:CLASS",
        help="Section to validate and the model it binds onto (repeatable)",
    )
    parser.add_argument("--environment", default=None, help="Environment overlay suffix")
    parser.add_argument(
        "--env-prefix",
        default=None,
        help="Also read environment variables with this prefix (e.g. MYAPP_)",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(log_level=args.log_level, json_output=settings.log_json)
    if settings.tracing_enabled:
        configure_tracing(console_export=settings.tracing_console_export)

    if not args.section:
        print("No sections given; use --section PATH=MODULE:CLASS", file=sys.stderr)
        return EXIT_USAGE

    try:
        sections = [parse_section_spec(spec) for spec in args.section]
        source = load_sources(args.files, env_prefix=args.env_prefix)
    except (ValueError, ConfigurationSourceError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_USAGE

    manager = ConfigManager(source, ConfigurationOptions(environment=args.environment))

    invalid = 0
    for section_path, model_type in sections:
        errors = manager.validate_all([(section_path, model_type)])
        if errors:
            invalid += 1
            print(f"❌ {section_path} ({model_type.__name__}): {errors[0].message}")
        else:
            print(f"✅ {section_path} ({model_type.__name__})")

    if invalid:
        print(f"\n{invalid} of {len(sections)} section(s) invalid")
        return EXIT_INVALID
    print(f"\nAll {len(sections)} section(s) valid")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
