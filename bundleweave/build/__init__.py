"""Bundle build collaborators: compilation and asset output."""

from .compiler import CompileError, ElmCompiler, component_source
from .concat import BundleWriter

__all__ = ["BundleWriter", "CompileError", "ElmCompiler", "component_source"]
