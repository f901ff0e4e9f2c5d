"""External compiler invocation for a bundle's components."""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, List, Sequence

from ..config import CompilerConfig, DEFAULT_CLIENT_DIR
from ..logging import get_logger

Runner = Callable[..., None]


class CompileError(RuntimeError):
    """Raised when the external compiler fails or produces no output."""


def component_source(name: str, client_dir: str = DEFAULT_CLIENT_DIR) -> str:
    """``Pages.Home`` -> ``app/client/Pages/Home.elm``."""
    return f"{client_dir}/{name.replace('.', '/')}.elm"


class ElmCompiler:
    """Compiles an ordered list of components into a single JavaScript blob."""

    def __init__(
        self,
        root: Path | str,
        *,
        compiler: CompilerConfig | None = None,
        client_dir: str = DEFAULT_CLIENT_DIR,
        runner: Runner | None = None,
    ) -> None:
        self.root = Path(root)
        self.compiler = compiler or CompilerConfig()
        self.client_dir = client_dir
        self._runner = runner or self._default_runner
        self.logger = get_logger("build.compiler")

    def command(self, component_names: Sequence[str], output_file: Path) -> List[str]:
        command = [self.compiler.path, "make"]
        command.extend(component_source(name, self.client_dir) for name in component_names)
        if self.compiler.optimize:
            command.append("--optimize")
        command.append(f"--output={output_file}")
        return command

    def compile(self, component_names: Sequence[str]) -> str:
        if not component_names:
            raise CompileError("No components to compile")

        handle, raw_path = tempfile.mkstemp(prefix="bundleweave-", suffix=".js")
        output_file = Path(raw_path)
        try:
            # The compiler writes the file itself; only the name is needed here.
            os.close(handle)
            command = self.command(component_names, output_file)
            self.logger.debug("Running %s", " ".join(command))
            try:
                self._runner(command, cwd=self.root)
            except subprocess.CalledProcessError as exc:
                detail = (exc.stderr or "").strip() or str(exc)
                raise CompileError(f"Compilation failed for {', '.join(component_names)}: {detail}") from exc
            except OSError as exc:
                raise CompileError(f"Could not run {self.compiler.path}: {exc}") from exc
            code = output_file.read_text(encoding="utf-8")
            if not code.strip():
                raise CompileError(f"Compiler produced no output for {', '.join(component_names)}")
            return code
        finally:
            output_file.unlink(missing_ok=True)

    @staticmethod
    def _default_runner(args: Sequence[str], cwd: Path) -> None:
        subprocess.run(list(args), cwd=str(cwd), check=True, capture_output=True, text=True)


__all__ = ["CompileError", "ElmCompiler", "component_source"]
