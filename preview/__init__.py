# livepane - Preview Pipeline Components
"""
Core modules for the livepane previewer:
- errors: Error types and diagnostic helpers
- grammar: Lark grammar for component modules
- transformer: AST to Python code transformation
- compiler: parse + transform + sandbox pipeline
- sandbox: builds and runs the isolated unit
- registry: the capability map visible to components
- controller: lifecycle driver with stale-result handling
- render: render host and crash boundary
"""

from .errors import (
    CompileError,
    ComponentRuntimeError,
    ParseError,
    PreviewError,
    ValidationError,
)
from .grammar import component_grammar
from .transformer import ComponentTransformer
from .compiler import build_component, transform_source
from .sandbox import CompiledArtifact, execute
from .registry import CapabilityRegistry, RegistryBuilder, default_registry
from .controller import LifecycleController, PreviewState
from .render import ErrorBoundary, RenderHost

__all__ = [
    'CapabilityRegistry',
    'CompileError',
    'CompiledArtifact',
    'ComponentRuntimeError',
    'ComponentTransformer',
    'ErrorBoundary',
    'LifecycleController',
    'ParseError',
    'PreviewError',
    'PreviewState',
    'RegistryBuilder',
    'RenderHost',
    'ValidationError',
    'build_component',
    'component_grammar',
    'default_registry',
    'execute',
    'transform_source',
]
