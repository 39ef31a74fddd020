"""Last-used answer tracking for skipping redundant regeneration."""

from analyst_pro.core.schemas_documents import Answer


class AnswerCache:
    """
    Holds the answer-set used for the last successful generation.

    Matching is exact: same length, same order, and every answer equal field
    by field. An empty cache never matches.
    """

    def __init__(self, answers: list[Answer] | None = None) -> None:
        self._answers: tuple[Answer, ...] = tuple(answers or ())

    def record(self, answers: list[Answer]) -> None:
        self._answers = tuple(answers)

    def clear(self) -> None:
        self._answers = ()

    def matches(self, answers: list[Answer]) -> bool:
        if not self._answers:
            return False
        return self._answers == tuple(answers)

    def snapshot(self) -> list[Answer]:
        return list(self._answers)

    def __bool__(self) -> bool:
        return bool(self._answers)
