"""External LaTeX compiler invocation"""

import logging
import subprocess
from pathlib import Path

from notetex.core.models import CompileResult


logger = logging.getLogger(__name__)

COMPILE_TIMEOUT = 300


def compile_latex(tex_path: str | Path, compiler: str = "pdflatex", timeout: int = COMPILE_TIMEOUT) -> CompileResult:
    """Run compiler non-interactively in the file's directory. Returns CompileResult(success, error)."""
    tex_path = Path(tex_path)
    if not tex_path.is_file():
        return CompileResult(False, f"No such file: {tex_path}")

    cmd = [compiler, "-interaction=nonstopmode", "-halt-on-error", tex_path.name]
    logger.info("Compiling %s with %s", tex_path, compiler)
    try:
        proc = subprocess.run(
            cmd, cwd=tex_path.parent, capture_output=True, text=True, timeout=timeout,
        )
    except FileNotFoundError:
        return CompileResult(False, f"Compiler not found: {compiler}")
    except subprocess.TimeoutExpired:
        return CompileResult(False, f"{compiler} timed out after {timeout}s")

    if proc.returncode != 0:
        tail = (proc.stdout or proc.stderr or "").strip().splitlines()[-5:]
        return CompileResult(False, f"{compiler} exited with {proc.returncode}: " + " | ".join(tail))
    return CompileResult(True)
