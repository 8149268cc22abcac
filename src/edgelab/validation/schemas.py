"""Pydantic contracts enforced before any odds math runs.

Two families live here: the odds-feed snapshot (games -> bookmakers ->
markets -> outcomes, snake_case as the upstream feed sends it) and the
request payloads for market, parlay and parlay-comparison analysis (camelCase,
with snake_case accepted too). ``validate_*`` helpers never raise; they return
a :class:`ValidationOutcome` carrying field-level errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from edgelab.errors import FieldError, InvalidOddsError
from edgelab.ev.types import MarketQuotes
from edgelab.odds.baseline import default_baseline_book
from edgelab.odds.conversion import OddsFormat, parse_odds_value
from edgelab.odds.devig import BookOdds
from edgelab.odds.types import Odds
from edgelab.parlays.types import ParlayLeg, ParlayTicket

T = TypeVar("T")

FormatName = Literal["american", "decimal", "auto"]


def _odds_value(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValueError("Odds value required")
    try:
        return parse_odds_value(value)
    except InvalidOddsError as exc:
        raise ValueError(exc.message) from exc


OddsInput = Annotated[Decimal, BeforeValidator(_odds_value)]


def resolve_format(name: FormatName | str, default: str) -> OddsFormat:
    """Turn a caller's ``auto`` into the configured explicit format."""

    fmt = OddsFormat(name)
    if fmt is OddsFormat.AUTO:
        return OddsFormat(default)
    return fmt


class _FeedModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FeedOutcome(_FeedModel):
    name: str
    price: int | float | str | None = None
    point: float | None = None
    description: str | None = None


class FeedMarket(_FeedModel):
    key: str
    outcomes: list[FeedOutcome] = Field(default_factory=list)


class FeedBookmaker(_FeedModel):
    key: str = ""
    title: str = ""
    markets: list[FeedMarket] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.title or self.key

    @model_validator(mode="after")
    def _named(self) -> FeedBookmaker:
        if not (self.key or self.title):
            raise ValueError("Bookmaker needs a key or a title")
        return self


class FeedGame(_FeedModel):
    id: str | None = None
    sport_key: str = ""
    sport_title: str | None = None
    commence_time: str | None = None
    home_team: str
    away_team: str
    bookmakers: list[FeedBookmaker] = Field(default_factory=list)

    @field_validator("commence_time", mode="before")
    @classmethod
    def _time_as_text(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            return value.isoformat() if hasattr(value, "isoformat") else str(value)
        return value

    @property
    def label(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    @property
    def game_id(self) -> str:
        return self.id or f"{self.away_team}_{self.home_team}_{self.commence_time or ''}"

    @property
    def sport(self) -> str:
        return self.sport_title or self.sport_key


FEED_ADAPTER: TypeAdapter[list[FeedGame]] = TypeAdapter(list[FeedGame])


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class BookQuoteInput(_RequestModel):
    name: str = Field(min_length=1)
    key: str | None = None
    odds: list[OddsInput] = Field(min_length=1)
    format: FormatName = "auto"

    def to_book_odds(self, default_format: str) -> BookOdds:
        fmt = resolve_format(self.format, default_format)
        return BookOdds(
            name=self.name,
            key=self.key,
            odds=tuple(Odds(value, fmt) for value in self.odds),
        )


class MarketInput(_RequestModel):
    market: str | None = None
    outcomes: list[str] | None = None
    books: list[BookQuoteInput] = Field(min_length=1)

    @field_validator("books")
    @classmethod
    def _books_consistent(cls, books: list[BookQuoteInput]) -> list[BookQuoteInput]:
        if not books:
            return books
        count = len(books[0].odds)
        mismatched = [b.name for b in books if len(b.odds) != count]
        if mismatched:
            raise ValueError(
                f"All books must have the same number of outcomes ({count}); "
                f"mismatched: {', '.join(mismatched)}"
            )
        predicate = default_baseline_book()
        if not any(predicate(b.name) or (b.key and predicate(b.key)) for b in books):
            raise ValueError("A baseline book must be included for baseline probabilities")
        return books

    @model_validator(mode="after")
    def _outcome_names_match(self) -> MarketInput:
        if self.outcomes is not None and self.books:
            count = len(self.books[0].odds)
            if len(self.outcomes) != count:
                raise ValueError(
                    f"{len(self.outcomes)} outcome names given for {count} quoted outcomes"
                )
        return self

    def to_quotes(self, default_format: str) -> MarketQuotes:
        return MarketQuotes(
            market=self.market,
            outcomes=tuple(self.outcomes) if self.outcomes is not None else None,
            books=tuple(book.to_book_odds(default_format) for book in self.books),
        )


class ParlayLegInput(_RequestModel):
    book: str = Field(min_length=1)
    outcome: str | None = None
    odds: OddsInput
    format: FormatName = "auto"
    is_push: bool = False
    true_probability: Decimal | None = Field(default=None, ge=0, le=1)

    def to_leg(self, default_format: str) -> ParlayLeg:
        return ParlayLeg(
            book=self.book,
            outcome=self.outcome,
            odds=Odds(self.odds, resolve_format(self.format, default_format)),
            true_probability=self.true_probability,
            is_push=self.is_push,
        )


class ParlayInput(_RequestModel):
    id: str | None = None
    book: str = Field(min_length=1)
    legs: list[ParlayLegInput] = Field(min_length=2)
    stake: Decimal = Field(default=Decimal(1), gt=0)

    def to_ticket(self, default_format: str) -> ParlayTicket:
        return ParlayTicket(
            id=self.id,
            book=self.book,
            stake=self.stake,
            legs=[leg.to_leg(default_format) for leg in self.legs],
        )


class ParlaysComparisonInput(_RequestModel):
    parlays: list[ParlayInput] = Field(min_length=1)


class EVRequest(_RequestModel):
    type: Literal["market", "parlay", "parlays"]
    data: dict[str, Any]


REQUEST_SCHEMAS: dict[str, type[BaseModel]] = {
    "market": MarketInput,
    "parlay": ParlayInput,
    "parlays": ParlaysComparisonInput,
}

STAKE_ADAPTER: TypeAdapter[Decimal] = TypeAdapter(Annotated[Decimal, Field(gt=0)])


@dataclass
class ValidationOutcome(Generic[T]):
    success: bool
    data: T | None = None
    errors: list[FieldError] = field(default_factory=list)


def field_errors(exc: PydanticValidationError, prefix: tuple[str | int, ...] = ()) -> list[FieldError]:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in prefix + tuple(error["loc"]))
        errors.append(FieldError(location=location or "__root__", message=error["msg"]))
    return errors


def _validate(model: type[BaseModel], payload: Any) -> ValidationOutcome[Any]:
    try:
        return ValidationOutcome(success=True, data=model.model_validate(payload))
    except PydanticValidationError as exc:
        return ValidationOutcome(success=False, errors=field_errors(exc))


def validate_market_data(payload: Any) -> ValidationOutcome[MarketInput]:
    return _validate(MarketInput, payload)


def validate_parlay_data(payload: Any) -> ValidationOutcome[ParlayInput]:
    return _validate(ParlayInput, payload)


def validate_parlays_comparison(payload: Any) -> ValidationOutcome[ParlaysComparisonInput]:
    return _validate(ParlaysComparisonInput, payload)


def validate_stake(stake: Any) -> ValidationOutcome[Decimal]:
    try:
        return ValidationOutcome(success=True, data=STAKE_ADAPTER.validate_python(stake))
    except PydanticValidationError as exc:
        return ValidationOutcome(success=False, errors=field_errors(exc, ("stake",)))


def validate_feed(payload: Any) -> ValidationOutcome[list[FeedGame]]:
    try:
        return ValidationOutcome(success=True, data=FEED_ADAPTER.validate_python(payload))
    except PydanticValidationError as exc:
        return ValidationOutcome(success=False, errors=field_errors(exc, ("games",)))


def validate_ev_request(payload: Any) -> ValidationOutcome[tuple[str, BaseModel]]:
    """Validate the request envelope, then its ``data`` against the schema for ``type``."""

    envelope = _validate(EVRequest, payload)
    if not envelope.success:
        return ValidationOutcome(success=False, errors=envelope.errors)
    request: EVRequest = envelope.data
    schema = REQUEST_SCHEMAS[request.type]
    try:
        data = schema.model_validate(request.data)
    except PydanticValidationError as exc:
        return ValidationOutcome(success=False, errors=field_errors(exc, ("data",)))
    return ValidationOutcome(success=True, data=(request.type, data))
