"""
Capability registry: the closed set of names sandboxed components may use.
"""
from collections.abc import Mapping
from types import MappingProxyType

from preview.errors import CapabilityConflictError, CapabilityNotFound
from preview.log import debug_log
from preview.runtime import BINDING_SETS, PINNED_HOOKS


class CapabilityRegistry(Mapping):
    """Immutable name -> binding mapping handed to every sandbox unit."""

    def __init__(self, bindings, collisions=()):
        self._bindings = MappingProxyType(dict(bindings))
        self.collisions = tuple(collisions)

    def __getitem__(self, name):
        try:
            return self._bindings[name]
        except KeyError:
            raise CapabilityNotFound(name) from None

    def __iter__(self):
        return iter(self._bindings)

    def __len__(self):
        return len(self._bindings)

    def __repr__(self):
        return f"CapabilityRegistry({sorted(self._bindings)})"


class RegistryBuilder:
    """
    Assembles a registry from binding sets in registration order.

    A later set overwrites names registered by an earlier one; every such
    collision is recorded as (name, earlier source, later source). With
    strict=True a collision raises CapabilityConflictError instead. Pinned
    entries are applied after all sets and always win.
    """

    def __init__(self, strict=False):
        self.strict = strict
        self._bindings = {}
        self._sources = {}
        self._pins = {}
        self._collisions = []

    def add_set(self, source_name, bindings):
        for name, value in bindings.items():
            previous = self._sources.get(name)
            if previous is not None and previous != source_name:
                if self.strict:
                    raise CapabilityConflictError(
                        f"'{name}' is provided by both '{previous}' and '{source_name}'")
                debug_log(f"Registry collision: '{name}' from '{source_name}' replaces '{previous}'")
                self._collisions.append((name, previous, source_name))
            self._bindings[name] = value
            self._sources[name] = source_name
        return self

    def pin(self, name, value):
        self._pins[name] = value
        return self

    def build(self):
        bindings = dict(self._bindings)
        bindings.update(self._pins)
        return CapabilityRegistry(bindings, self._collisions)


def default_registry(binding_sets=("react", "ui"), strict=False):
    """Build the stock registry from named binding sets plus the pinned hooks."""
    builder = RegistryBuilder(strict=strict)
    for set_name in binding_sets:
        try:
            factory = BINDING_SETS[set_name]
        except KeyError:
            raise ValueError(f"Unknown binding set '{set_name}'. "
                             f"Available: {', '.join(sorted(BINDING_SETS))}") from None
        builder.add_set(set_name, factory())
    for name, value in PINNED_HOOKS.items():
        builder.pin(name, value)
    return builder.build()
