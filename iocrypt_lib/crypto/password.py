"""Random password / keycode generation."""
from __future__ import annotations
import logging
import secrets
import string
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

COMPLEX_UPPER = 1
COMPLEX_LOWER = 2
COMPLEX_NUMERICS = 4
COMPLEX_SPECIAL = 8
COMPLEX_BINARY = 16

DEFAULT_COMPLEXITY = COMPLEX_UPPER | COMPLEX_LOWER | COMPLEX_NUMERICS
DEFAULT_LENGTH = 16

SPECIAL_CHARACTERS = "!#$%&()*+,-./:;<=>?@[]^_{}~"
AMBIGUOUS_CHARACTERS = "0Oo1lI|"

CHARACTER_CLASSES = (
    (COMPLEX_UPPER, string.ascii_uppercase),
    (COMPLEX_LOWER, string.ascii_lowercase),
    (COMPLEX_NUMERICS, string.digits),
    (COMPLEX_SPECIAL, SPECIAL_CHARACTERS),
    (COMPLEX_BINARY, "".join(chr(i) for i in range(256))),
)


@dataclass
class PasswordPolicy:
    complexity: int = DEFAULT_COMPLEXITY
    length: int = DEFAULT_LENGTH
    avoid_ambiguous: bool = True
    avoid_adjacent: bool = False

    def pool(self) -> str:
        chars = []
        for flag, charset in CHARACTER_CLASSES:
            if self.complexity & flag:
                chars.extend(c for c in charset if c not in chars)
        if self.avoid_ambiguous:
            chars = [c for c in chars if c not in AMBIGUOUS_CHARACTERS]
        return "".join(chars)


class Password:
    COMPLEX_UPPER = COMPLEX_UPPER
    COMPLEX_LOWER = COMPLEX_LOWER
    COMPLEX_NUMERICS = COMPLEX_NUMERICS
    COMPLEX_SPECIAL = COMPLEX_SPECIAL
    COMPLEX_BINARY = COMPLEX_BINARY

    def generate(self, policy: PasswordPolicy) -> str:
        """Sample `policy.length` characters uniformly from the policy pool.

        Returns "" when the pool is empty, the length is not positive, or
        adjacent duplicates must be avoided with a single character pool.
        """
        pool = policy.pool()
        if not pool or policy.length <= 0:
            return ""
        if policy.avoid_adjacent and len(pool) < 2 and policy.length > 1:
            logger.warning("Single character pool cannot avoid adjacent duplicates")
            return ""

        out = []
        while len(out) < policy.length:
            char = secrets.choice(pool)
            if policy.avoid_adjacent and out and out[-1] == char:
                continue
            out.append(char)
        return "".join(out)

    def mkpass(
        self,
        complexity: Optional[int] = None,
        length: Optional[int] = None,
        avoid_ambiguous: bool = True,
        avoid_adjacent: bool = False,
    ) -> str:
        policy = PasswordPolicy(
            complexity=DEFAULT_COMPLEXITY if complexity is None else complexity,
            length=DEFAULT_LENGTH if length is None else length,
            avoid_ambiguous=avoid_ambiguous,
            avoid_adjacent=avoid_adjacent,
        )
        return self.generate(policy)
