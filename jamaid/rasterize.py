"""
External rasterizer boundary.

Hands Mermaid text (plus an optional renderer configuration) to the
Mermaid CLI (mmdc) to produce PNG or SVG files.
"""

import json
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from jamaid.errors import RenderError

MMDC_INSTALL_HINT = "mmdc (mermaid-cli) not found. Install it with: npm i -g @mermaid-js/mermaid-cli"
RASTER_FORMATS = ('png', 'svg')


def build_mmdc_command(input_path: str, out_path: str, fmt: str,
                       config_path: Optional[str] = None) -> List[str]:
    cmd = ['mmdc', '-i', input_path, '-o', out_path, '-e', fmt, '-b', 'transparent']
    if config_path:
        cmd += ['-c', config_path]
    return cmd


def render_with_mmdc(mermaid: str, out_path: str, fmt: str,
                     config: Optional[Dict[str, Any]] = None,
                     timeout: int = 120) -> None:
    """Rasterize *mermaid* into *out_path*. Temp files are always removed."""
    if fmt not in RASTER_FORMATS:
        raise RenderError(f"Unsupported raster format: {fmt}")

    temp_paths: List[str] = []
    try:
        with tempfile.NamedTemporaryFile('w', suffix='.mmd', delete=False, encoding='utf-8') as f:
            f.write(mermaid + "\n")
            temp_paths.append(f.name)
            input_path = f.name

        config_path = None
        if config:
            with tempfile.NamedTemporaryFile('w', suffix='.config.json', delete=False, encoding='utf-8') as f:
                json.dump(config, f)
                f.write("\n")
                temp_paths.append(f.name)
                config_path = f.name

        Path(out_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            result = subprocess.run(
                build_mmdc_command(input_path, out_path, fmt, config_path),
                capture_output=True, text=True, timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise RenderError(MMDC_INSTALL_HINT) from exc
        except subprocess.TimeoutExpired as exc:
            raise RenderError(f"{fmt.upper()} rendering timed out after {timeout}s") from exc

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "Unknown error").strip()[:500]
            raise RenderError(f"{fmt.upper()} rendering failed: {detail}")
    finally:
        for path in temp_paths:
            try:
                os.unlink(path)
            except OSError:
                pass
