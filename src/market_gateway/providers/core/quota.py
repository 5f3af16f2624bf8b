"""Daily request accounting per upstream provider."""
import logging
from datetime import datetime, timedelta

from market_gateway.providers.core.protocols import Clock
from market_gateway.schemas import QuotaSnapshot

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(minutes=30)

# Log a usage line every N counted requests.
_LOG_EVERY = 5


class QuotaTracker:
    """Tracks daily call counts and blocks calls once the provider is exhausted.

    Exhaustion happens either when the local total reaches ``soft_limit`` (the
    call that reaches it is still allowed) or when the upstream answers 429.
    While exhausted, ``try_consume`` refuses calls until ``cooldown`` has
    elapsed since ``exhausted_at`` or the calendar day rolls over.
    """

    def __init__(
        self,
        provider_name: str,
        soft_limit: int,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        clock: Clock = datetime.now,
    ) -> None:
        self.provider_name = provider_name
        self._soft_limit = soft_limit
        self._cooldown = cooldown
        self._clock = clock
        self._counts: dict[str, int] = {}
        self._total = 0
        self._window_start = clock()
        self._exhausted = False
        self._exhausted_at: datetime | None = None

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def total(self) -> int:
        return self._total

    @property
    def cooldown(self) -> timedelta:
        return self._cooldown

    def try_consume(self, category: str) -> bool:
        """Count one outbound call for category; False means do not send it."""
        now = self._clock()
        self._roll_window(now)

        if self._exhausted:
            if now - self._exhausted_at < self._cooldown:
                remaining = self._cooldown - (now - self._exhausted_at)
                logger.info(
                    "%s cooldown: %d minutes remaining",
                    self.provider_name,
                    round(remaining.total_seconds() / 60),
                )
                return False
            logger.info("%s cooldown ended, resuming requests", self.provider_name)
            self._exhausted = False
            self._exhausted_at = None

        self._increment(category)
        if self._total >= self._soft_limit:
            logger.warning(
                "%s daily soft limit reached (%d requests); blocking for %s",
                self.provider_name,
                self._total,
                self._cooldown,
            )
            self._exhausted = True
            self._exhausted_at = now
        return True

    def record_attempt(self, category: str) -> None:
        """Count a retry attempt that is sent regardless of exhaustion."""
        self._roll_window(self._clock())
        self._increment(category)

    def report_upstream_rate_limited(self) -> None:
        """Mark exhausted now; an upstream 429 overrides local estimates."""
        logger.warning(
            "%s answered 429; blocking requests for %s", self.provider_name, self._cooldown
        )
        self._exhausted = True
        self._exhausted_at = self._clock()

    def get_snapshot(self) -> QuotaSnapshot:
        """Read-only projection of the current state.

        A day rollover or an elapsed cooldown that the next ``try_consume``
        would apply is reflected in the view; the tracker itself is unchanged.
        """
        now = self._clock()
        if now.date() != self._window_start.date():
            return QuotaSnapshot(
                provider=self.provider_name,
                daily_limit=self._soft_limit,
                remaining=self._soft_limit,
                window_start=now,
            )

        exhausted = self._exhausted
        exhausted_at = self._exhausted_at
        if exhausted and exhausted_at is not None and now - exhausted_at >= self._cooldown:
            exhausted, exhausted_at = False, None

        cooldown_remaining = 0.0
        resumes_at = None
        if exhausted and exhausted_at is not None:
            resumes_at = exhausted_at + self._cooldown
            cooldown_remaining = (resumes_at - now).total_seconds()
        return QuotaSnapshot(
            provider=self.provider_name,
            counts=dict(self._counts),
            total=self._total,
            daily_limit=self._soft_limit,
            remaining=max(0, self._soft_limit - self._total),
            window_start=self._window_start,
            exhausted=exhausted,
            exhausted_at=exhausted_at,
            cooldown_remaining_seconds=cooldown_remaining,
            resumes_at=resumes_at,
        )

    def reset(self, now: datetime | None = None) -> None:
        """Start a new counting day."""
        self._window_start = now or self._clock()
        self._counts.clear()
        self._total = 0
        self._exhausted = False
        self._exhausted_at = None

    def _roll_window(self, now: datetime) -> None:
        if now.date() != self._window_start.date():
            logger.info("%s new day, resetting request counts", self.provider_name)
            self.reset(now)

    def _increment(self, category: str) -> None:
        self._total += 1
        self._counts[category] = self._counts.get(category, 0) + 1
        if self._total % _LOG_EVERY == 0:
            logger.info("%s usage: total=%d %s", self.provider_name, self._total, self._counts)
