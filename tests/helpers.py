"""Small helpers shared by the test modules."""

import asyncio
from datetime import date


def run(coro):
    """Run a coroutine to completion."""
    return asyncio.run(coro)


class FixedClock:
    """A today_provider that tests can move forward."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today
