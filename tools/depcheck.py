from __future__ import annotations

import argparse
import ast
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

PACKAGE_ROOT = Path(__file__).resolve().parents[1] / "src" / "bistro"

_FRAMEWORKS = frozenset(
    {
        "fastapi",
        "starlette",
        "sqlalchemy",
        "alembic",
        "psycopg",
        "redis",
        "httpx",
        "requests",
        "opentelemetry",
    }
)

# Each layer may only depend inward: domain <- application <- api/infrastructure.
LAYER_RULES: dict[str, frozenset[str]] = {
    "domain": _FRAMEWORKS
    | {
        "pydantic",
        "prometheus_client",
        "bistro.api",
        "bistro.application",
        "bistro.infrastructure",
    },
    "application": _FRAMEWORKS | {"bistro.api", "bistro.infrastructure"},
}

DEFAULT_LAYER = "domain"


@dataclass(frozen=True)
class Violation:
    file_path: Path
    line: int
    module: str


def _python_files(root: Path) -> Iterable[Path]:
    if root.is_file() and root.suffix == ".py":
        yield root
        return
    if root.is_dir():
        yield from root.rglob("*.py")


def _matches_forbidden(module: str, forbidden_modules: frozenset[str]) -> bool:
    return any(
        module == forbidden or module.startswith(f"{forbidden}.")
        for forbidden in forbidden_modules
    )


def _imported_modules(tree: ast.AST) -> Iterable[tuple[int, str]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.lineno, node.module


def _scan_file(file_path: Path, forbidden_modules: frozenset[str]) -> list[Violation]:
    tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
    return [
        Violation(file_path=file_path, line=line, module=module)
        for line, module in _imported_modules(tree)
        if _matches_forbidden(module, forbidden_modules)
    ]


def find_violations(
    paths: Sequence[Path],
    layer: str = DEFAULT_LAYER,
    extra_forbidden: Iterable[str] = (),
) -> list[Violation]:
    forbidden_modules = LAYER_RULES[layer] | frozenset(extra_forbidden)
    violations: list[Violation] = []
    for path in paths:
        for file_path in sorted(_python_files(path)):
            violations.extend(_scan_file(file_path, forbidden_modules))
    return violations


def check_package() -> list[Violation]:
    """Every layer of the installed source tree against its own rules."""
    violations: list[Violation] = []
    for layer in LAYER_RULES:
        violations.extend(find_violations([PACKAGE_ROOT / layer], layer=layer))
    return violations


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Dependency policy check: bistro.domain and bistro.application must "
            "not import frameworks or outer layers."
        )
    )
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        help="Path to scan (repeatable). Defaults to every layer under src/bistro.",
    )
    parser.add_argument(
        "--layer",
        choices=sorted(LAYER_RULES),
        default=DEFAULT_LAYER,
        help="Rules applied to --path (default: domain).",
    )
    parser.add_argument(
        "--forbid",
        action="append",
        default=[],
        help="Additional module prefix to forbid (repeatable).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.path:
        violations = find_violations(
            [Path(item) for item in args.path],
            layer=args.layer,
            extra_forbidden=args.forbid,
        )
    else:
        violations = check_package()

    if not violations:
        print("depcheck passed")
        return 0

    print(f"depcheck failed: {len(violations)} forbidden import(s) detected")
    for violation in violations:
        print(f"{violation.file_path}:{violation.line} -> {violation.module}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
