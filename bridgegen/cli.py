"""CLI entrypoints for bridgegen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from .config import ConfigError, load_config
from .dispatch import DispatchPlan
from .errors import BridgegenError, SchemaValidationError
from .generator import Generator
from .logging import configure_logging
from .models import EnumKind, EnumTypeDef, ModuleSpec, ObjectTypeDef


def _add_common_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write debug logs to this file.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bridgegen",
        description="Generate Rust declarations and C++ JSI bridges from TypeScript module specs.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    codegen_parser = subparsers.add_parser(
        "codegen",
        help="Generate native declarations and bridge glue for every module.",
    )
    _add_common_options(codegen_parser, suppress_default=True)
    _add_path_argument(codegen_parser)
    codegen_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and render without writing any file.",
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Print the validated module specs found in the project.",
    )
    _add_common_options(show_parser, suppress_default=True)
    _add_path_argument(show_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for bridgegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=getattr(args, "log_file", None),
    )

    try:
        config = load_config(Path(args.path))
        generator = Generator(config)
        if args.command == "codegen":
            result = generator.run(dry_run=bool(getattr(args, "dry_run", False)))
        elif args.command == "show":
            modules = generator.extractor.extract(generator.discover())
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except SchemaValidationError as exc:
        parser.exit(1, f"{exc.report()}\nbridgegen {args.command} failed: {exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")
    except (BridgegenError, OSError) as exc:
        parser.exit(1, f"bridgegen {args.command} failed: {exc}\nRun with --verbose for more details.\n")

    if args.command == "codegen":
        if getattr(args, "dry_run", False):
            print(f"{len(result.files)} file(s) rendered (dry-run)")
            for generated in result.files:
                print(f"  {_relativize(generated.path)}")
        else:
            print(
                f"{len(result.modules)} module(s): {len(result.written)} file(s) written, "
                f"{len(result.unchanged)} unchanged, {len(result.kept)} kept"
            )
    else:
        total = len(modules)
        print(f"{total} module(s) found in {config.project.name}")
        for index, module in enumerate(modules, start=1):
            print()
            print(f"{module.name} ({index}/{total})")
            for line in describe_module(module):
                print(f"  {line}")


def describe_module(spec: ModuleSpec) -> List[str]:
    """Human-readable outline of a module spec."""
    plan = DispatchPlan.for_module(spec)
    lines: List[str] = ["methods:"]
    for method in spec.methods:
        params = ", ".join(f"{param.name}: {param.type}" for param in method.params)
        lines.append(f"  {method.name}({params}): {method.return_type}  [{plan.mode(method.name).value}]")
    if spec.signals:
        lines.append("signals:")
        lines.extend(f"  {signal.name}" for signal in spec.signals)
    if spec.type_defs:
        lines.append("types:")
    for definition in spec.type_defs:
        if isinstance(definition, ObjectTypeDef):
            fields = "; ".join(f"{item.name}: {item.type}" for item in definition.fields)
            lines.append(f"  interface {definition.name} {{ {fields} }}")
        elif isinstance(definition, EnumTypeDef):
            if definition.kind is EnumKind.STRING:
                variants = ", ".join(f"{v.label} = {v.value!r}" for v in definition.variants)
            else:
                variants = ", ".join(f"{v.label} = {v.value}" for v in definition.variants)
            lines.append(f"  enum {definition.name} {{ {variants} }}")
    return lines


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
