#!/usr/bin/env python3
"""
formulakit.py — CLI narzędzie FormulaKit.

Działa całkowicie lokalnie — nie wymaga uruchomionego serwera API.

Konfiguracja: zmienne środowiskowe z prefiksem FORMULA_KIT_
lub plik .env (np. FORMULA_KIT_RANDOM_SEED=42).

Podkomendy:
    check    — sparsuj wyrażenie, pokaż wejścia albo diagnostykę błędu
    eval     — sparsuj i policz wyrażenie dla podanych wejść
    examples — pokaż wbudowaną bibliotekę przykładowych formuł
    library  — wczytaj bibliotekę formuł z pliku JSON
    export   — zapisz formuły do pliku JSON

Użycie:
    python formulakit.py check "let temp = x * 2; temp + y"
    python formulakit.py eval "a + b * 2" --set a=2 --set b=3
    python formulakit.py eval "random() < 0.5 ? 1 : 0" --seed 7
    python formulakit.py examples --category Advanced --evaluate
    python formulakit.py library formulas.json
    python formulakit.py export out.json --formula damage="base * 2"
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from contracts import FormulaExample

# -- biblioteka przykładów -------------------------------------------------

EXAMPLES: list[FormulaExample] = [
    FormulaExample(
        category="Simple",
        name="Basic Damage",
        formula_id="damage",
        expression="baseDamage * (1 + strength * 0.1)",
        sample_inputs={"baseDamage": 10, "strength": 5},
    ),
    FormulaExample(
        category="Simple",
        name="Health Regeneration",
        formula_id="healthRegen",
        expression="baseRegen + vitality * 0.5",
        sample_inputs={"baseRegen": 2, "vitality": 4},
    ),
    FormulaExample(
        category="Simple",
        name="Experience Required",
        formula_id="expRequired",
        expression="100 * pow(level, 1.5)",
        sample_inputs={"level": 4},
    ),
    FormulaExample(
        category="Advanced",
        name="Critical Hit",
        formula_id="critDamage",
        expression="let isCrit = random() < critChance;\nisCrit ? baseDamage * 2 : baseDamage",
        sample_inputs={"critChance": 0.25, "baseDamage": 10},
    ),
    FormulaExample(
        category="Advanced",
        name="Damage with Armor",
        formula_id="damageWithArmor",
        expression=(
            "let dmg = baseDamage * (1 + strength * 0.1);\n"
            "let reduction = armor / (armor + 100);\n"
            "dmg * (1 - reduction)"
        ),
        sample_inputs={"baseDamage": 10, "strength": 5, "armor": 100},
    ),
    FormulaExample(
        category="Advanced",
        name="Tiered Bonus",
        formula_id="tieredBonus",
        expression=(
            "let mult;\n"
            "if (score >= 1000) { mult = 3 }\n"
            "else if (score >= 500) { mult = 2 }\n"
            "else { mult = 1 }\n"
            "baseReward * mult"
        ),
        sample_inputs={"score": 600, "baseReward": 10},
    ),
    FormulaExample(
        category="Complex",
        name="Full Damage System",
        formula_id="fullDamage",
        expression=(
            "let weaponDmg = baseDamage * (1 + strength * 0.1);\n"
            "let isCrit = random() < critChance;\n"
            "\n"
            "if (isCrit) {\n"
            "    weaponDmg *= 2\n"
            "}\n"
            "\n"
            "let reduction = armor / (armor + 100);\n"
            "weaponDmg * (1 - reduction)"
        ),
        sample_inputs={"baseDamage": 10, "strength": 5, "critChance": 0.25, "armor": 100},
    ),
    FormulaExample(
        category="Math",
        name="Quadratic Formula +",
        formula_id="quadraticSolution",
        expression="((-1*b)+sqrt((b^2)-(4*a*c)))/(2*a)",
        sample_inputs={"a": 1, "b": -3, "c": 2},
    ),
    FormulaExample(
        category="Math",
        name="Quadratic Formula -",
        formula_id="quadraticSolutionNeg",
        expression="((-1*b)-sqrt((b^2)-(4*a*c)))/(2*a)",
        sample_inputs={"a": 1, "b": -3, "c": 2},
    ),
]


# -- helpers ---------------------------------------------------------------

_CONSOLE: Console | None = None


def _console() -> Console:
    global _CONSOLE
    if _CONSOLE is None:
        _CONSOLE = Console(highlight=False)
    return _CONSOLE


def _safe_terminal_text(value: Any) -> str:
    s = str(value)
    s = s.replace("→", "->").replace("—", "-").replace("…", "...")
    encoding = sys.stdout.encoding or "utf-8"
    try:
        s.encode(encoding)
        return s
    except UnicodeEncodeError:
        return s.encode(encoding, errors="replace").decode(encoding, errors="replace")


def _short(value: Any, limit: int = 64) -> str:
    s = _safe_terminal_text(value).replace("\n", " ").strip()
    if len(s) <= limit:
        return s
    return s[: limit - 3] + "..."


def _names(names: frozenset[str] | set[str]) -> str:
    return ", ".join(sorted(names)) if names else "-"


def _print_kv_table(title: str, rows: list[tuple[str, Any]]) -> None:
    table = Table(title=title, box=box.ASCII, show_header=False, pad_edge=False)
    table.add_column("Key", no_wrap=True, style="bold cyan")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(_safe_terminal_text(key), _safe_terminal_text(value))
    _console().print(table)


def _fail(message: str) -> None:
    print(message, file=sys.stderr)
    sys.exit(1)


def _parse_assignment(raw: str, what: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        _fail(f"Błąd: oczekiwano {what} w postaci nazwa=wartość, otrzymano: {raw!r}")
    return name.strip(), value.strip()


def _bindings(pairs: list[str]) -> dict[str, float]:
    bindings: dict[str, float] = {}
    for raw in pairs:
        name, value = _parse_assignment(raw, "--set")
        try:
            bindings[name] = float(value)
        except ValueError:
            _fail(f"Błąd: wartość zmiennej '{name}' nie jest liczbą: {value!r}")
    return bindings


def _parser(seed: Optional[int]):
    from adapters.formula_parser import RecursiveDescentParser
    from adapters.random_provider import build_random_provider
    from config import Settings

    if seed is None:
        seed = Settings().random_seed
    return RecursiveDescentParser(random_provider=build_random_provider(seed))


def _read_expression(args: argparse.Namespace) -> str:
    if getattr(args, "file", None):
        try:
            return open(args.file, encoding="utf-8").read()
        except OSError as e:
            _fail(f"Błąd odczytu pliku: {e}")
    text = args.expression if args.expression is not None else sys.stdin.read()
    if not text.strip():
        _fail("Błąd: podaj wyrażenie jako argument, przez --file lub stdin")
    return text


# -- podkomendy ------------------------------------------------------------

def _check(args: argparse.Namespace) -> None:
    text = _read_expression(args)
    result = _parser(None).parse(text)
    if not result.ok:
        _fail(result.error.render())
    formula = result.unwrap()
    _print_kv_table("Formula OK", [
        ("Expression", _short(formula.source_text, 72)),
        ("Root", formula.root.node_type),
        ("Required inputs", _names(formula.required_inputs)),
        ("Local variables", _names(formula.local_variables)),
    ])


def _eval(args: argparse.Namespace) -> None:
    text = _read_expression(args)
    bindings = _bindings(args.set)
    result = _parser(args.seed).parse(text)
    if not result.ok:
        _fail(result.error.render())
    formula = result.unwrap()
    outcome = formula.evaluate(bindings)
    if not outcome.ok:
        _fail(f"Błąd ewaluacji: {outcome.error.message}")
    value = outcome.unwrap()
    if args.quiet:
        print(value)
        return
    _print_kv_table("Result", [
        ("Expression", _short(formula.source_text, 72)),
        ("Inputs", ", ".join(f"{k}={v}" for k, v in sorted(bindings.items())) or "-"),
        ("Value", value),
    ])


def _examples(args: argparse.Namespace) -> None:
    from adapters.random_provider import SeededRandomProvider
    from adapters.formula_parser import RecursiveDescentParser

    selected = [
        e for e in EXAMPLES
        if args.category is None or e.category.lower() == args.category.lower()
    ]
    if not selected:
        categories = sorted({e.category for e in EXAMPLES})
        _fail(f"Brak przykładów w kategorii '{args.category}'. Dostępne: {', '.join(categories)}")

    parser = RecursiveDescentParser(random_provider=SeededRandomProvider(args.seed))
    table = Table(title=f"Examples [{len(selected)}]", box=box.ASCII, show_lines=False)
    table.add_column("Category", no_wrap=True, style="cyan")
    table.add_column("ID", no_wrap=True)
    table.add_column("Name")
    table.add_column("Inputs")
    if args.evaluate:
        table.add_column("Value", justify="right", no_wrap=True)
    else:
        table.add_column("Expression")

    for example in selected:
        formula = parser.parse(example.expression).unwrap()
        row = [
            example.category,
            example.formula_id,
            example.name,
            _names(formula.required_inputs),
        ]
        if args.evaluate:
            row.append(f"{formula.evaluate(example.sample_inputs).unwrap():g}")
        else:
            row.append(_short(example.expression, 60))
        table.add_row(*(_safe_terminal_text(c) for c in row))
    _console().print(table)


def _library(args: argparse.Namespace) -> None:
    from adapters.formula_codec import FormulaJsonLoader
    from adapters.formula_store import InMemoryFormulaStore

    errors: list[str] = []
    store = InMemoryFormulaStore(on_error=errors.append)
    loaded = FormulaJsonLoader(store, on_error=errors.append).load_from_file(args.path)

    for message in errors:
        print(message, file=sys.stderr)
    if loaded == 0:
        sys.exit(1)

    table = Table(title=f"Library {args.path} [{loaded}]", box=box.ASCII, show_lines=False)
    table.add_column("ID", no_wrap=True, style="cyan")
    table.add_column("Inputs")
    table.add_column("Expression")
    for formula_id in store.ids():
        table.add_row(
            _safe_terminal_text(formula_id),
            _names(store.required_inputs(formula_id)),
            _short(store.expression(formula_id), 60),
        )
    _console().print(table)


def _export(args: argparse.Namespace) -> None:
    from adapters.formula_codec import FormulaJsonLoader
    from adapters.formula_store import InMemoryFormulaStore

    errors: list[str] = []
    store = InMemoryFormulaStore(on_error=errors.append)
    if args.examples:
        for example in EXAMPLES:
            store.register(example.formula_id, example.expression)
    for raw in args.formula:
        formula_id, expression = _parse_assignment(raw, "--formula")
        store.register(formula_id, expression)

    if errors:
        _fail("\n".join(errors))
    if store.count() == 0:
        _fail("Błąd: brak formuł do eksportu (użyj --formula id=wyrażenie lub --examples)")

    if not FormulaJsonLoader(store, on_error=errors.append).export_to_file(args.path):
        _fail("\n".join(errors))
    print(f"Zapisano {store.count()} formuł do {args.path}")


# -- main ------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="formulakit",
        description="FormulaKit — CLI (lokalny, bez serwera API)",
    )
    parser.add_argument("--log-level", default=None,
                        help="Poziom logowania (domyślnie z FORMULA_KIT_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    # check
    p = sub.add_parser("check", help="Sparsuj wyrażenie i pokaż jego wejścia")
    p.add_argument("expression", nargs="?", help="Wyrażenie (lub stdin)")
    p.add_argument("--file", "-f", help="Ścieżka do pliku z wyrażeniem")

    # eval
    p = sub.add_parser("eval", help="Policz wyrażenie dla podanych wejść")
    p.add_argument("expression", nargs="?", help="Wyrażenie (lub stdin)")
    p.add_argument("--file", "-f", help="Ścieżka do pliku z wyrażeniem")
    p.add_argument("--set", "-s", action="append", default=[], metavar="NAME=VALUE",
                   help="Wartość zmiennej wejściowej (można powtarzać)")
    p.add_argument("--seed", type=int, default=None,
                   help="Ziarno dla random()/rand()/randf()")
    p.add_argument("--quiet", "-q", action="store_true",
                   help="Tylko wynik, bez tabeli")

    # examples
    p = sub.add_parser("examples", help="Pokaż wbudowaną bibliotekę formuł")
    p.add_argument("--category", "-c", default=None,
                   help="Simple | Advanced | Complex | Math")
    p.add_argument("--evaluate", "-e", action="store_true",
                   help="Policz każdy przykład dla przykładowych wejść")
    p.add_argument("--seed", type=int, default=0)

    # library
    p = sub.add_parser("library", help="Wczytaj bibliotekę formuł z pliku JSON")
    p.add_argument("path", help="Ścieżka do pliku JSON")

    # export
    p = sub.add_parser("export", help="Zapisz formuły do pliku JSON")
    p.add_argument("path", help="Ścieżka do pliku JSON")
    p.add_argument("--formula", action="append", default=[], metavar="ID=EXPR")
    p.add_argument("--examples", action="store_true",
                   help="Dołącz wbudowaną bibliotekę przykładów")

    args = parser.parse_args(argv)

    from config import Settings
    logging.basicConfig(level=(args.log_level or Settings().log_level).upper())

    commands = {
        "check":    _check,
        "eval":     _eval,
        "examples": _examples,
        "library":  _library,
        "export":   _export,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
