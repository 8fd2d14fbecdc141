from __future__ import annotations

import subprocess
import sys
from pathlib import Path

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "tools" / "depcheck.py"


def _run(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        capture_output=True,
        text=True,
        check=False,
    )


def test_depcheck_fails_on_forbidden_import(tmp_path: Path) -> None:
    domain_dir = tmp_path / "domain"
    domain_dir.mkdir(parents=True, exist_ok=True)

    violating_file = domain_dir / "model.py"
    violating_file.write_text("import sqlalchemy\n", encoding="utf-8")

    result = _run("--path", str(domain_dir))

    combined_output = f"{result.stdout}\n{result.stderr}"
    assert result.returncode != 0
    assert "sqlalchemy" in combined_output
    assert str(violating_file) in combined_output


def test_depcheck_flags_outer_layer_imports(tmp_path: Path) -> None:
    violating_file = tmp_path / "entities.py"
    violating_file.write_text(
        "from bistro.application.ports.repositories import OrderRepository\n",
        encoding="utf-8",
    )

    result = _run("--path", str(violating_file))

    assert result.returncode == 1
    assert "bistro.application.ports.repositories" in result.stdout


def test_depcheck_accepts_extra_forbidden_modules(tmp_path: Path) -> None:
    source = tmp_path / "money.py"
    source.write_text("import decimal\n", encoding="utf-8")

    assert _run("--path", str(source)).returncode == 0
    assert _run("--path", str(source), "--forbid", "decimal").returncode == 1


def test_application_layer_may_not_touch_adapters(tmp_path: Path) -> None:
    source = tmp_path / "use_case.py"
    source.write_text(
        "from pydantic import BaseModel\n"
        "from bistro.infrastructure.db.session import get_engine\n",
        encoding="utf-8",
    )

    result = _run("--path", str(source), "--layer", "application")

    assert result.returncode == 1
    assert "bistro.infrastructure.db.session" in result.stdout
    assert "pydantic" not in result.stdout


def test_source_tree_respects_layers() -> None:
    result = _run()
    assert result.returncode == 0, result.stdout
