"""Currency converter widget state."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from nzi.cache.entry import CacheStatus
from nzi.exchange.client import pair_key


@dataclass
class CurrencyConverter:
    """
    Amount entry and conversion for one currency pair.

    The rate is whatever the cache last produced for the pair. With no rate
    the converted amount is None and the status says why.
    """

    from_currency: str
    to_currency: str
    from_amount: float = 100.0
    rate: Optional[float] = None
    rate_status: CacheStatus = CacheStatus.UNAVAILABLE
    input_buffer: str = "100"
    editing: bool = False
    pair_index: int = 0
    needs_refresh: bool = True

    @classmethod
    def for_pair(
        cls, base: str, quote: str, amount: float = 100.0, pairs: Sequence[Tuple[str, str]] = ()
    ) -> "CurrencyConverter":
        converter = cls(
            from_currency=base.upper(),
            to_currency=quote.upper(),
            from_amount=amount,
            input_buffer=_format_buffer(amount),
        )
        # -1 when the pair is not a cycle pair, so the first cycle lands on pairs[0]
        converter.pair_index = _pair_position(converter.pair, pairs)
        return converter

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.from_currency, self.to_currency)

    @property
    def key(self) -> str:
        return pair_key(self.from_currency, self.to_currency)

    @property
    def to_amount(self) -> Optional[float]:
        if self.rate is None:
            return None
        return self.from_amount * self.rate

    def update_rate(self, rate: Optional[float], status: CacheStatus) -> None:
        self.rate = rate
        self.rate_status = status
        if status is CacheStatus.FRESH:
            self.needs_refresh = False

    def set_amount(self, amount: float) -> None:
        self.from_amount = max(0.0, amount)

    def _select(self, base: str, quote: str) -> None:
        self.from_currency = base.upper()
        self.to_currency = quote.upper()
        self.rate = None
        self.rate_status = CacheStatus.UNAVAILABLE
        self.needs_refresh = True

    def swap_currencies(self) -> None:
        self._select(self.to_currency, self.from_currency)

    def cycle_pair(self, pairs: Sequence[Tuple[str, str]]) -> None:
        if not pairs:
            return
        position = _pair_position(self.pair, pairs)
        if position >= 0:
            self.pair_index = position
        self.pair_index = (self.pair_index + 1) % len(pairs)
        self._select(*pairs[self.pair_index])

    def handle_input(self, char: str) -> None:
        if char.isdigit() or (char == "." and "." not in self.input_buffer):
            self.input_buffer += char
            self._apply_buffer()

    def handle_backspace(self) -> None:
        self.input_buffer = self.input_buffer[:-1]
        self._apply_buffer()

    def clear_input(self) -> None:
        self.input_buffer = ""
        self.set_amount(0.0)

    def _apply_buffer(self) -> None:
        # Buffer only ever holds digits and at most one '.'
        if self.input_buffer in ("", "."):
            self.set_amount(0.0)
            return
        self.set_amount(float(self.input_buffer))

    def needs_rate_refresh(self) -> bool:
        return self.needs_refresh or self.rate is None

    def clear_refresh_flag(self) -> None:
        self.needs_refresh = False

    def format_result(self) -> str:
        if self.to_amount is None:
            return f"{self.to_currency} unavailable"
        text = f"{self.to_amount:,.2f} {self.to_currency}"
        if self.rate_status is CacheStatus.STALE:
            text += " (stale)"
        return text


def _pair_position(pair: Tuple[str, str], pairs: Sequence[Tuple[str, str]]) -> int:
    for i, (base, quote) in enumerate(pairs):
        if (base.upper(), quote.upper()) == pair:
            return i
    return -1


def _format_buffer(amount: float) -> str:
    return f"{amount:g}"
