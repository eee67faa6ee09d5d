"""
Channel code generation.
"""

import random
import string
from typing import Callable, Optional

from signaleur.domain.exceptions import IdSpaceExhausted

DEFAULT_ALPHABET = string.ascii_uppercase
DEFAULT_CODE_LENGTH = 4
DEFAULT_MAX_ATTEMPTS = 20


class ChannelIdGenerator:
    """
    Draws short random channel codes that are free in the registry.

    Generation is pure: the caller must register the returned code while
    still holding whatever lock protects ``exists``.
    """

    def __init__(
        self,
        alphabet: str = DEFAULT_ALPHABET,
        length: int = DEFAULT_CODE_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize generator.

        Args:
            alphabet: Characters to draw from, uniformly
            length: Code length
            max_attempts: Draws tried before giving up
            rng: Random source (defaults to SystemRandom)

        Raises:
            ValueError: If alphabet is empty or length/max_attempts < 1
        """
        if not alphabet:
            raise ValueError("Alphabet cannot be empty")
        if length < 1:
            raise ValueError("Code length must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.alphabet = alphabet
        self.length = length
        self.max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()

    @property
    def id_space_size(self) -> int:
        """Number of distinct codes this generator can produce."""
        return len(self.alphabet) ** self.length

    def draw(self) -> str:
        """Draw one code without checking for collisions."""
        return "".join(self._rng.choice(self.alphabet) for _ in range(self.length))

    def generate(self, exists: Callable[[str], bool]) -> str:
        """
        Generate a code for which ``exists`` is false.

        Args:
            exists: Membership check against current registry state

        Returns:
            Unused channel code

        Raises:
            IdSpaceExhausted: If every one of max_attempts draws collided
        """
        for _ in range(self.max_attempts):
            code = self.draw()
            if not exists(code):
                return code

        raise IdSpaceExhausted(self.max_attempts)
