"""cli.ui

Interactive prompts used when required flags are missing.
"""

from __future__ import annotations

from typing import Dict, List, Optional

QUIT_ANSWERS = {"z", "q", "quit", "exit"}


def choose_from_menu(title: str, options: Dict[str, str]) -> str:
    """Numbered menu over ``{key: label}``. Answer with a number or a key."""
    keys = list(options)
    print(f"\n{title}")
    for idx, key in enumerate(keys, start=1):
        print(f"  [{idx}] {options[key]} ({key})")

    while True:
        answer = input(f"Choose 1-{len(keys)} (Z to exit): ").strip()
        if answer.lower() in QUIT_ANSWERS:
            raise SystemExit(0)
        if answer in options:
            return answer
        if answer.isdigit() and 1 <= int(answer) <= len(keys):
            return keys[int(answer) - 1]
        print(f"Not a valid choice: {answer!r}")


def prompt_text(prompt: str, default: Optional[str] = None) -> str:
    suffix = f" [{default}]" if default is not None else ""
    answer = input(f"{prompt}{suffix}: ").strip()
    if not answer and default is not None:
        return str(default)
    return answer


def prompt_list(prompt: str) -> List[str]:
    """Comma-separated answer, asked again until it holds at least one value."""
    while True:
        values = [v.strip() for v in input(f"{prompt} (comma-separated): ").split(",") if v.strip()]
        if values:
            return values
        print("Enter at least one value.")
