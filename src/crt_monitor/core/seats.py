"""Seat availability evaluation."""

from collections.abc import Iterable

from .models import Availability, ParsedTrain, SeatCategory, Token, TokenKind

PLENTY_THRESHOLD = 20
PLENTY_LABEL = "≥20"


def token_contribution(token: Token) -> float:
    """Get the number of seats a token stands for.

    Returns:
        0 when unavailable, ``inf`` for '有', otherwise the count
    """
    if token.kind is TokenKind.UNLIMITED:
        return float("inf")
    if token.kind is TokenKind.COUNT:
        return float(token.count or 0)
    # EMPTY, NONE, NOT_SOLD, PRESALE and UNKNOWN never count
    return 0.0


def is_available(token: Token) -> bool:
    """Whether a token means seats can be bought now.

    '*' (presale, not yet on sale) is treated as unavailable, and so is a
    count of 0 even though it is numeric.
    """
    return token_contribution(token) > 0


class SeatAvailabilityEvaluator:
    """Decides whether a train has remaining tickets."""

    def evaluate(
        self,
        train: ParsedTrain,
        allowed_categories: Iterable[SeatCategory | str] | None = None,
    ) -> Availability:
        """Evaluate a train's seat tokens.

        Args:
            train: Parsed train
            allowed_categories: Only these categories are considered when given

        Returns:
            Availability with the total and a 'category token / ...' summary
        """
        allowed = (
            {SeatCategory.lookup(item) for item in allowed_categories}
            if allowed_categories is not None
            else None
        )

        parts: list[str] = []
        total = 0.0
        for category in SeatCategory:
            if allowed is not None and category not in allowed:
                continue
            token = train.seats.get(category)
            if token is None or not is_available(token):
                continue
            parts.append(f"{category.value} {token.raw}")
            total += token_contribution(token)

        if not parts:
            return Availability(remain=False, total=0, summary="")

        return Availability(
            remain=True,
            total=PLENTY_LABEL if total >= PLENTY_THRESHOLD else int(total),
            summary=" / ".join(parts),
        )
