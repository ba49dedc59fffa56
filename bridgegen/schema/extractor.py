"""Turns interface description units into validated module specs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..errors import DuplicateDefinitionError, SchemaError, SchemaParseError, SchemaValidationError
from ..logging import get_logger
from ..models import InterfaceUnit, Method, ModuleSpec, Param, SignalDef, SourceLocation
from ..types import Type
from .resolver import MODULE_BASES, PROMISE_TYPE, SIGNAL_TYPE, TypePosition, TypeResolver, is_module_interface
from .syntax import (
    Declaration,
    InterfaceDecl,
    MemberDecl,
    ParsedUnit,
    RegistryCall,
    TypeScriptSyntax,
)

RESERVED_NAMES = frozenset({PROMISE_TYPE, SIGNAL_TYPE, *MODULE_BASES})
RESERVED_PREFIX = "Nullable"


@dataclass
class _ModuleDraft:
    name: str
    interface: InterfaceDecl
    methods: List[Method] = field(default_factory=list)
    signals: List[SignalDef] = field(default_factory=list)

    def types(self) -> List[Type]:
        collected: List[Type] = []
        for method in self.methods:
            collected.extend(param.type for param in method.params)
            collected.append(method.return_type)
        return collected


class SchemaExtractor:
    """Extracts ``ModuleSpec`` records from TypeScript interface descriptions."""

    def __init__(self, syntax: TypeScriptSyntax | None = None) -> None:
        self.syntax = syntax or TypeScriptSyntax()
        self.logger = get_logger("extractor")

    def extract(self, units: Sequence[InterfaceUnit]) -> List[ModuleSpec]:
        """Return one spec per registered module, or raise with every error found."""
        errors: List[SchemaError] = []
        modules: List[ModuleSpec] = []
        module_names: Dict[str, SourceLocation] = {}

        for unit in units:
            parsed = self.syntax.parse(unit)
            if parsed.errors:
                errors.extend(parsed.errors)
            if not parsed.declarations and not parsed.registrations:
                continue
            unit_modules, unit_errors = self._extract_unit(parsed)
            errors.extend(unit_errors)
            for module in unit_modules:
                if module.name in module_names:
                    errors.append(
                        DuplicateDefinitionError(module.name, module.location, what="module")
                    )
                    continue
                if module.location is not None:
                    module_names[module.name] = module.location
                modules.append(module)

        if errors:
            self.logger.debug("Extraction failed with %d error(s)", len(errors))
            raise SchemaValidationError(errors)
        self.logger.info("Extracted %d module(s) from %d unit(s)", len(modules), len(units))
        return modules

    def _extract_unit(self, parsed: ParsedUnit) -> Tuple[List[ModuleSpec], List[SchemaError]]:
        errors: List[SchemaError] = []
        table = self._declaration_table(parsed, errors)
        resolver = TypeResolver(table)

        drafts: List[_ModuleDraft] = []
        registered: Set[str] = set()
        for registration in parsed.registrations:
            interface = self._module_interface(registration, table, errors)
            if interface is None or registration.module_name is None:
                continue
            registered.add(interface.name)
            drafts.append(self._draft(registration.module_name, interface, resolver, errors))

        for name, declaration in table.items():
            if is_module_interface(declaration) and name not in registered:
                self.logger.warning(
                    "%s: module interface '%s' is never registered; skipping",
                    declaration.location,
                    name,
                )

        resolver.finish()
        errors.extend(resolver.errors)

        modules = [
            ModuleSpec(
                name=draft.name,
                methods=tuple(draft.methods),
                signals=tuple(draft.signals),
                type_defs=resolver.definitions_for(draft.types()),
                location=draft.interface.location,
            )
            for draft in drafts
        ]
        for module in modules:
            self.logger.debug(
                "Module %s: %d method(s), %d signal(s), %d type(s)",
                module.name,
                len(module.methods),
                len(module.signals),
                len(module.type_defs),
            )
        return modules, errors

    def _declaration_table(
        self, parsed: ParsedUnit, errors: List[SchemaError]
    ) -> Dict[str, Declaration]:
        table: Dict[str, Declaration] = {}
        for declaration in parsed.declarations:
            name = declaration.name
            if not name:
                continue
            if name in RESERVED_NAMES or name.startswith(RESERVED_PREFIX):
                errors.append(
                    SchemaParseError(f"type name '{name}' is reserved", declaration.location)
                )
                continue
            if name in table:
                errors.append(
                    DuplicateDefinitionError(name, declaration.location, what="type")
                )
                continue
            table[name] = declaration
        return table

    def _module_interface(
        self,
        registration: RegistryCall,
        table: Dict[str, Declaration],
        errors: List[SchemaError],
    ) -> Optional[InterfaceDecl]:
        location = registration.location
        if len(registration.spec_args) != 1:
            errors.append(
                SchemaParseError(
                    "module registration needs exactly one spec type argument", location
                )
            )
            return None
        if registration.module_name is None:
            errors.append(
                SchemaParseError("module name must be a string literal", location)
            )
            return None
        spec_arg = registration.spec_args[0]
        if spec_arg.kind != "reference" or spec_arg.name is None:
            errors.append(
                SchemaParseError(
                    f"module spec '{spec_arg.text}' must name an interface", spec_arg.location
                )
            )
            return None
        declaration = table.get(spec_arg.name)
        if not isinstance(declaration, InterfaceDecl) or not is_module_interface(declaration):
            bases = " or ".join(sorted(MODULE_BASES))
            errors.append(
                SchemaParseError(
                    f"module spec '{spec_arg.name}' must be an interface extending {bases}",
                    spec_arg.location,
                )
            )
            return None
        return declaration

    def _draft(
        self,
        module_name: str,
        interface: InterfaceDecl,
        resolver: TypeResolver,
        errors: List[SchemaError],
    ) -> _ModuleDraft:
        draft = _ModuleDraft(module_name, interface)
        members: Dict[str, str] = {}
        for member in interface.members:
            if member.name is None:
                errors.append(
                    SchemaParseError(
                        "module members must have plain identifier names", member.location
                    )
                )
                continue
            if member.kind == "method":
                entry, what = self._method(member, resolver, errors), "method"
            elif member.kind == "property":
                entry, what = self._signal(member, errors), "signal"
            else:
                errors.append(
                    SchemaParseError(
                        f"unsupported module member '{member.name}' ({member.kind.replace('_', ' ')})",
                        member.location,
                    )
                )
                continue
            if entry is None:
                continue
            if member.name in members:
                errors.append(
                    DuplicateDefinitionError(member.name, member.location, what=members[member.name])
                )
                continue
            members[member.name] = what
            if isinstance(entry, Method):
                draft.methods.append(entry)
            else:
                draft.signals.append(entry)
        return draft

    def _method(
        self, member: MemberDecl, resolver: TypeResolver, errors: List[SchemaError]
    ) -> Optional[Method]:
        name = member.name or ""
        failed = False
        if member.optional:
            errors.append(SchemaParseError(f"method '{name}' must not be optional", member.location))
            failed = True
        if member.generic:
            errors.append(SchemaParseError(f"method '{name}' must not be generic", member.location))
            failed = True

        params: List[Param] = []
        seen: Set[str] = set()
        for param in member.params:
            if param.name is None:
                errors.append(
                    SchemaParseError(
                        f"parameters of '{name}' must be plain identifiers", param.location
                    )
                )
                failed = True
                continue
            if param.optional:
                errors.append(
                    SchemaParseError(
                        f"optional parameter '{param.name}' is not supported; declare it as `T | null`",
                        param.location,
                    )
                )
                failed = True
                continue
            if param.name in seen:
                errors.append(
                    DuplicateDefinitionError(param.name, param.location, what="parameter")
                )
                failed = True
                continue
            seen.add(param.name)
            if param.type is None:
                errors.append(
                    SchemaParseError(
                        f"parameter '{param.name}' needs a type annotation", param.location
                    )
                )
                failed = True
                continue
            resolved = resolver.resolve(param.type, TypePosition.PARAM)
            if resolved is None:
                failed = True
                continue
            params.append(Param(param.name, resolved))

        if member.type is None:
            errors.append(
                SchemaParseError(f"method '{name}' needs a return type annotation", member.location)
            )
            return None
        return_type = resolver.resolve(member.type, TypePosition.RETURN)
        if return_type is None or failed:
            return None
        return Method(name, tuple(params), return_type, member.location)

    def _signal(self, member: MemberDecl, errors: List[SchemaError]) -> Optional[SignalDef]:
        name = member.name or ""
        declared = member.type
        if declared is None or declared.kind != "reference" or declared.name != SIGNAL_TYPE:
            errors.append(
                SchemaParseError(
                    f"property '{name}' is not allowed in a module interface; "
                    "only Signal properties are",
                    member.location,
                )
            )
            return None
        if member.optional:
            errors.append(SchemaParseError(f"signal '{name}' must not be optional", member.location))
            return None
        return SignalDef(name, member.location)


__all__ = ["RESERVED_NAMES", "RESERVED_PREFIX", "SchemaExtractor"]
