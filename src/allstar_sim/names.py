from __future__ import annotations

import random

FIRST_NAMES = [
    "Alex", "Noah", "Liam", "Ethan", "Lucas", "Mason", "Logan", "Aiden", "Owen", "Wyatt",
    "Carter", "Hudson", "Dylan", "Connor", "Ryan", "Nathan", "Cole", "Jaxon", "Parker", "Eli",
    "Marek", "Andrei", "Nikita", "Viktor", "Teemu", "Mikael", "Anton", "Rasmus", "Henrik", "Jesper",
]

LAST_NAMES = [
    "Anderson", "Bennett", "Dalton", "Ellis", "Foster", "Graves", "Hughes", "Jensen", "Keller", "Lawson",
    "Morrison", "Nash", "Olsen", "Quinn", "Sullivan", "Turner", "Vaughn", "Walker", "Zimmer", "Dvorak",
    "Eriksson", "Fedorov", "Johansson", "Lundqvist", "Novak", "Orlov", "Salonen", "Virtanen", "Wallin", "Aho",
]


class NameGenerator:
    """Unique display names drawn from a seeded shuffle of first/last pairs."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._used: set[str] = set()
        self._pool = [f"{first} {last}" for first in FIRST_NAMES for last in LAST_NAMES]
        self._rng.shuffle(self._pool)
        self._idx = 0

    def next_name(self) -> str:
        if self._idx < len(self._pool):
            name = self._pool[self._idx]
            self._idx += 1
            self._used.add(name)
            return name
        suffix = len(self._used) + 1
        name = f"{self._rng.choice(self._pool)} {suffix}"
        self._used.add(name)
        return name
