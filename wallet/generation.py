from dataclasses import dataclass


class GenerationCounter(object):
    """
    Monotonic context version. Anything that suspends captures a token first
    and checks it on resume; advancing the counter makes every outstanding
    token stale at once.
    """

    def __init__(self):
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def advance(self) -> int:
        self._value += 1
        return self._value

    def capture(self) -> "GenerationToken":
        return GenerationToken(self, self._value)


@dataclass(frozen=True)
class GenerationToken:
    counter: GenerationCounter
    value: int

    def is_current(self) -> bool:
        return self.counter.value == self.value


@dataclass(frozen=True)
class CompositeToken:
    """Current only while every captured part is current."""
    parts: tuple

    def is_current(self) -> bool:
        return all(part.is_current() for part in self.parts)
